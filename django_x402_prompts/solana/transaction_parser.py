"""
Normalization of provider JSON into the canonical transaction DTOs.

Providers disagree on field naming across response shapes (``source`` /
``from`` / ``account``, explicit ``pubkey`` vs ``accountIndex``, missing
``mint`` on plain ``transfer`` instructions). Everything is resolved here so
the verifier only deals with ParsedTransactionDTO.
"""

from typing import Any

from solders.transaction_status import TransactionConfirmationStatus

from django_x402_prompts.solana.dtos import (
    InnerInstructionGroupDTO,
    ParsedTransactionDTO,
    SignatureStatusDTO,
    TokenBalanceDTO,
    TransferInstructionDTO,
)
from django_x402_prompts.solana.enums import ConfirmationStatusEnum

def to_atomic_amount(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return 0


def parse_confirmation_status(value: Any) -> ConfirmationStatusEnum | None:
    if value is None:
        return None
    if value == TransactionConfirmationStatus.Processed:
        return ConfirmationStatusEnum.PROCESSED
    if value == TransactionConfirmationStatus.Confirmed:
        return ConfirmationStatusEnum.CONFIRMED
    if value == TransactionConfirmationStatus.Finalized:
        return ConfirmationStatusEnum.FINALIZED
    try:
        return ConfirmationStatusEnum(str(value).lower())
    except ValueError:
        return None


def parse_signature_status(signature: str, status: Any) -> SignatureStatusDTO | None:
    """
    Accepts either a solders TransactionStatus or the raw JSON-RPC dict.
    Returns None when the signature is not indexed yet.
    """
    if status is None:
        return None

    if isinstance(status, dict):
        error = status.get("err")
        confirmation_status = status.get("confirmationStatus")
        slot = status.get("slot")
    else:
        error = status.err
        confirmation_status = status.confirmation_status
        slot = status.slot

    return SignatureStatusDTO(
        signature=signature,
        confirmation_status=parse_confirmation_status(confirmation_status),
        error_present=error is not None,
        error=error,
        slot=slot,
    )


def _account_keys(message: dict) -> tuple[str, ...]:
    keys = []
    for key_entry in message.get("accountKeys") or []:
        if isinstance(key_entry, str):
            keys.append(key_entry)
        elif isinstance(key_entry, dict):
            keys.append(key_entry.get("pubkey"))
        else:
            keys.append(None)
    return tuple(keys)


def _resolve_account(entry: dict, account_keys: tuple[str, ...]) -> str | None:
    if entry.get("pubkey"):
        return entry["pubkey"]

    account_index = entry.get("accountIndex")
    if account_index is not None:
        if 0 <= account_index < len(account_keys):
            return account_keys[account_index]
        return None

    return entry.get("accountId") or entry.get("account")


def _parse_token_balances(
    entries: list[dict] | None, account_keys: tuple[str, ...]
) -> tuple[TokenBalanceDTO, ...]:
    balances = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        ui_token_amount = entry.get("uiTokenAmount") or {}
        balances.append(
            TokenBalanceDTO(
                account_index=entry.get("accountIndex"),
                account=_resolve_account(entry, account_keys),
                mint=entry.get("mint"),
                amount=to_atomic_amount(ui_token_amount.get("amount")),
                owner=entry.get("owner"),
            )
        )
    return tuple(balances)


def _parse_transfer_instruction(
    instruction: dict, account_mints: dict[str, str]
) -> TransferInstructionDTO | None:
    parsed = instruction.get("parsed")
    if not isinstance(parsed, dict) or not parsed.get("type"):
        return None

    info = parsed.get("info") or {}
    source = info.get("source") or info.get("from") or info.get("account")
    destination = info.get("destination") or info.get("to") or info.get("account")

    amount = info.get("amount")
    if amount is None:
        amount = (info.get("tokenAmount") or {}).get("amount")

    # plain "transfer" carries no mint; the token accounts it touches do
    mint = info.get("mint") or account_mints.get(destination) or account_mints.get(source)

    return TransferInstructionDTO(
        instruction_type=parsed["type"],
        mint=mint,
        amount=to_atomic_amount(amount),
        source=source,
        destination=destination,
    )


def _parse_instructions(
    instructions: list[dict] | None, account_mints: dict[str, str]
) -> tuple[TransferInstructionDTO, ...]:
    parsed_instructions = []
    for instruction in instructions or []:
        if not isinstance(instruction, dict):
            continue
        parsed_instruction = _parse_transfer_instruction(instruction, account_mints)
        if parsed_instruction:
            parsed_instructions.append(parsed_instruction)
    return tuple(parsed_instructions)


def parse_transaction(signature: str, payload: dict) -> ParsedTransactionDTO:
    """
    Builds a ParsedTransactionDTO from a ``getTransaction`` result encoded
    as ``jsonParsed``.
    """
    meta = payload.get("meta") or {}
    message = (payload.get("transaction") or {}).get("message") or {}
    account_keys = _account_keys(message)

    pre_token_balances = _parse_token_balances(meta.get("preTokenBalances"), account_keys)
    post_token_balances = _parse_token_balances(meta.get("postTokenBalances"), account_keys)

    account_mints = {
        balance.account: balance.mint
        for balance in pre_token_balances + post_token_balances
        if balance.account and balance.mint
    }

    inner_instruction_groups = tuple(
        InnerInstructionGroupDTO(
            index=group.get("index"),
            instructions=_parse_instructions(group.get("instructions"), account_mints),
        )
        for group in meta.get("innerInstructions") or []
        if isinstance(group, dict)
    )

    return ParsedTransactionDTO(
        signature=signature,
        error_present=meta.get("err") is not None,
        error=meta.get("err"),
        pre_token_balances=pre_token_balances,
        post_token_balances=post_token_balances,
        instructions=_parse_instructions(message.get("instructions"), account_mints),
        inner_instruction_groups=inner_instruction_groups,
        slot=payload.get("slot"),
        raw=payload,
    )
