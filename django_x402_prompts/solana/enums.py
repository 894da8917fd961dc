from enum import Enum


class ConfirmationStatusEnum(str, Enum):
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @property
    def is_settled(self) -> bool:
        return self in (ConfirmationStatusEnum.CONFIRMED, ConfirmationStatusEnum.FINALIZED)


class VerificationResultEnum(str, Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    INCONCLUSIVE = "inconclusive"


class FacilitatorVerdictEnum(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    UNREACHABLE = "unreachable"


class PaymentDecisionEnum(str, Enum):
    PAID = "paid"
    NOT_PAID = "not_paid"


class TransferInstructionTypeEnum(str, Enum):
    TRANSFER = "transfer"
    TRANSFER_CHECKED = "transferChecked"
