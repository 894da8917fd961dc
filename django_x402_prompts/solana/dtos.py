from dataclasses import dataclass, field
from typing import Any

from django_x402_prompts.solana.enums import ConfirmationStatusEnum


@dataclass(frozen=True, slots=True)
class SignatureStatusDTO:
    signature: str
    confirmation_status: ConfirmationStatusEnum | None = None
    error_present: bool = False
    error: Any = None
    slot: int | None = None

    @property
    def is_settled(self) -> bool:
        return bool(self.confirmation_status and self.confirmation_status.is_settled)


@dataclass(frozen=True, slots=True)
class TokenBalanceDTO:
    account_index: int | None
    account: str | None
    mint: str | None
    amount: int
    owner: str | None = None


@dataclass(frozen=True, slots=True)
class TransferInstructionDTO:
    instruction_type: str
    mint: str | None
    amount: int
    source: str | None
    destination: str | None


@dataclass(frozen=True, slots=True)
class InnerInstructionGroupDTO:
    index: int | None
    instructions: tuple[TransferInstructionDTO, ...] = ()


@dataclass(frozen=True, slots=True)
class ParsedTransactionDTO:
    signature: str
    error_present: bool
    error: Any = None
    pre_token_balances: tuple[TokenBalanceDTO, ...] = ()
    post_token_balances: tuple[TokenBalanceDTO, ...] = ()
    instructions: tuple[TransferInstructionDTO, ...] = ()
    inner_instruction_groups: tuple[InnerInstructionGroupDTO, ...] = ()
    slot: int | None = None
    raw: dict = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class LatestBlockhashDTO:
    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True, slots=True)
class AccountInfoDTO:
    exists: bool
    lamports: int | None = None
    owner: str | None = None
    executable: bool = False
    data: str | None = None
