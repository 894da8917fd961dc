import logging
from typing import Iterable

from django_x402_prompts.exceptions import (
    InvalidAddressError,
    RpcRateLimitedError,
    SolanaRpcError,
)
from django_x402_prompts.services.facilitator_client import FacilitatorClient
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.solana.base_solana_client import get_base_solana_client
from django_x402_prompts.solana.dtos import (
    ParsedTransactionDTO,
    TokenBalanceDTO,
    TransferInstructionDTO,
)
from django_x402_prompts.solana.enums import (
    FacilitatorVerdictEnum,
    TransferInstructionTypeEnum,
    VerificationResultEnum,
)
from django_x402_prompts.solana.solana_token_client import SolanaTokenClient
from django_x402_prompts.solana.solana_transaction_query_client import (
    SolanaTransactionQueryClient,
)

logger = logging.getLogger(__name__)

TRANSFER_INSTRUCTION_TYPES = {item.value for item in TransferInstructionTypeEnum}


class VerifyTransactionService:
    """
    Decides whether a transaction carries a qualifying USDC transfer from a
    claimed sender to the configured receiver.

    Provider failures never produce a denial: anything short of a definitive
    on-chain error or a fully scanned transaction without a match is
    INCONCLUSIVE, and the caller decides whether to retry.
    """

    def __init__(
        self,
        solana_transaction_query_client: SolanaTransactionQueryClient | None = None,
        facilitator_client: FacilitatorClient | None = None,
        payment_log_service: PaymentLogService | None = None,
        solana_token_client: SolanaTokenClient | None = None,
    ):
        self.solana_transaction_query_client = (
            solana_transaction_query_client
            or SolanaTransactionQueryClient(base_solana_client=get_base_solana_client())
        )
        self.facilitator_client = facilitator_client or FacilitatorClient()
        self.payment_log_service = payment_log_service or PaymentLogService()
        self.solana_token_client = solana_token_client or SolanaTokenClient()

    def verify(self, signature: str, sender_address: str) -> VerificationResultEnum:
        logger.info(f"Verifying transaction: signature={signature}, sender={sender_address}")

        try:
            signature_status = self.solana_transaction_query_client.get_signature_status(
                signature
            )
        except RpcRateLimitedError as e:
            logger.warning(f"RPC rate limited on getSignatureStatuses: {e}")
            return VerificationResultEnum.INCONCLUSIVE
        except SolanaRpcError as e:
            logger.error(f"getSignatureStatuses error: {e}")
            return VerificationResultEnum.INCONCLUSIVE

        if signature_status is None:
            logger.info("getSignatureStatuses returned null (not yet available)")
            return VerificationResultEnum.INCONCLUSIVE

        if signature_status.error_present:
            logger.error(
                f"Transaction error according to signature status: {signature_status.error}"
            )
            return VerificationResultEnum.REJECTED

        if not signature_status.is_settled:
            logger.info(
                "Signature not yet confirmed/finalized: confirmation_status=%s",
                signature_status.confirmation_status,
            )
            return VerificationResultEnum.INCONCLUSIVE

        try:
            parsed_transaction = (
                self.solana_transaction_query_client.get_parsed_transaction(signature)
            )
        except RpcRateLimitedError as e:
            logger.warning(f"RPC rate limited on getParsedTransaction: {e}")
            return VerificationResultEnum.INCONCLUSIVE
        except SolanaRpcError as e:
            logger.error(f"getParsedTransaction error: {e}")
            return VerificationResultEnum.INCONCLUSIVE
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f"Malformed parsed transaction for {signature}: {e}")
            return VerificationResultEnum.INCONCLUSIVE

        if parsed_transaction is None:
            logger.info(f"Parsed transaction unavailable despite settled status: {signature}")
            return VerificationResultEnum.INCONCLUSIVE

        if parsed_transaction.error_present:
            logger.error(f"Transaction failed: {parsed_transaction.error}")
            return VerificationResultEnum.REJECTED

        return self.match_transfer(parsed_transaction, sender_address)

    def match_transfer(
        self, parsed_transaction: ParsedTransactionDTO, sender_address: str
    ) -> VerificationResultEnum:
        receiver_address = x402_prompts_settings.RECEIVER_ADDRESS
        mint_address = str(self.solana_token_client.token_mint_address)
        required_amount = x402_prompts_settings.PRICE_ATOMIC_UNITS

        receiver_ata = self._derive_associated_token_address(receiver_address)
        sender_ata = self._derive_associated_token_address(sender_address)

        received_amount = self.find_balance_diff_transfer(
            parsed_transaction, receiver_address, receiver_ata, mint_address, required_amount
        )
        if received_amount is not None:
            if self._is_denied_by_facilitator(parsed_transaction.signature, sender_address):
                return VerificationResultEnum.REJECTED
            return self._accept(
                parsed_transaction, sender_address, received_amount, "balance_diff"
            )

        instruction = self.find_transfer_instruction(
            parsed_transaction.instructions,
            sender_address,
            sender_ata,
            receiver_address,
            receiver_ata,
            mint_address,
            required_amount,
        )
        if instruction:
            return self._accept(
                parsed_transaction, sender_address, instruction.amount, "instruction"
            )

        for group in parsed_transaction.inner_instruction_groups:
            instruction = self.find_transfer_instruction(
                group.instructions,
                sender_address,
                sender_ata,
                receiver_address,
                receiver_ata,
                mint_address,
                required_amount,
            )
            if instruction:
                return self._accept(
                    parsed_transaction, sender_address, instruction.amount, "inner_instruction"
                )

        # The full dump is the main evidence when a payment is disputed
        logger.info(
            "Transfer verification failed - full tx dump: signature=%s, tx=%s",
            parsed_transaction.signature,
            parsed_transaction.raw,
        )
        return VerificationResultEnum.REJECTED

    @staticmethod
    def find_balance_diff_transfer(
        parsed_transaction: ParsedTransactionDTO,
        receiver_address: str,
        receiver_ata: str | None,
        mint_address: str,
        required_amount: int,
    ) -> int | None:
        """
        Returns the amount received by the first receiver-related token
        account whose balance grew by at least ``required_amount``.

        An entry is receiver-related when its owner is the receiver, or its
        account is the receiver's ATA or the receiver address itself; any of
        the three suffices. A missing pre balance counts as zero, which
        covers an account created within the same transaction.
        """
        for post_balance in parsed_transaction.post_token_balances:
            if post_balance.mint != mint_address:
                continue

            is_receiver_related = (
                post_balance.owner == receiver_address
                or (receiver_ata is not None and post_balance.account == receiver_ata)
                or post_balance.account == receiver_address
            )
            if not is_receiver_related:
                continue

            pre_balance = _find_pre_balance(
                parsed_transaction.pre_token_balances, post_balance
            )
            pre_amount = pre_balance.amount if pre_balance else 0
            received_amount = post_balance.amount - pre_amount

            logger.info(
                "Balance diff check: account=%s, owner=%s, pre=%s, post=%s, diff=%s, required=%s",
                post_balance.account,
                post_balance.owner,
                pre_amount,
                post_balance.amount,
                received_amount,
                required_amount,
            )
            if received_amount >= required_amount:
                return received_amount

        return None

    @staticmethod
    def find_transfer_instruction(
        instructions: Iterable[TransferInstructionDTO],
        sender_address: str,
        sender_ata: str | None,
        receiver_address: str,
        receiver_ata: str | None,
        mint_address: str,
        required_amount: int,
    ) -> TransferInstructionDTO | None:
        sources = {address for address in (sender_ata, sender_address) if address}
        destinations = {address for address in (receiver_ata, receiver_address) if address}

        for instruction in instructions:
            if instruction.instruction_type not in TRANSFER_INSTRUCTION_TYPES:
                continue
            if instruction.mint != mint_address or instruction.amount < required_amount:
                continue
            if instruction.source in sources and instruction.destination in destinations:
                return instruction

        return None

    def _derive_associated_token_address(self, wallet_address: str) -> str | None:
        try:
            return str(self.solana_token_client.get_associated_token_address(wallet_address))
        except InvalidAddressError as e:
            logger.warning(f"Unable to compute ATA: {e}")
            return None

    def _is_denied_by_facilitator(self, signature: str, sender_address: str) -> bool:
        if not (
            x402_prompts_settings.FACILITATOR_CROSS_CHECK
            and self.facilitator_client.is_configured
        ):
            return False

        verdict = self.facilitator_client.check_attestation(signature, sender_address)
        if verdict == FacilitatorVerdictEnum.INVALID:
            logger.warning("Facilitator: transaction not validated by facilitator")
            return True
        return False

    def _accept(
        self,
        parsed_transaction: ParsedTransactionDTO,
        sender_address: str,
        amount_atomic: int,
        matched_by: str,
    ) -> VerificationResultEnum:
        logger.info(
            "Transfer verified: signature=%s, matched_by=%s, amount_atomic=%s",
            parsed_transaction.signature,
            matched_by,
            amount_atomic,
        )
        self.payment_log_service.record_confirmed_payment(
            transaction_reference=parsed_transaction.signature,
            sender_address=sender_address,
            receiver_address=x402_prompts_settings.RECEIVER_ADDRESS,
            token_mint=str(self.solana_token_client.token_mint_address),
            amount_atomic=amount_atomic,
            details={"matched_by": matched_by, "slot": parsed_transaction.slot},
        )
        return VerificationResultEnum.CONFIRMED


def _find_pre_balance(
    pre_balances: Iterable[TokenBalanceDTO], post_balance: TokenBalanceDTO
) -> TokenBalanceDTO | None:
    for pre_balance in pre_balances:
        if pre_balance.mint != post_balance.mint:
            continue
        if post_balance.account is not None:
            if pre_balance.account == post_balance.account:
                return pre_balance
        elif pre_balance.account_index == post_balance.account_index:
            return pre_balance
    return None
