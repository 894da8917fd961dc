from django.db import models


class PaymentRecordStatusTypes(models.TextChoices):
    CONFIRMED = "confirmed"
    FAILED = "failed"


class PurchaseStatusTypes(models.TextChoices):
    PENDING = "pending"  # payment settled, language model call not finished yet
    SUCCESS = "success"
    FAILED = "failed"


class RequestLogStatusTypes(models.TextChoices):
    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"


class RequestLogTypes(models.TextChoices):
    PROMPT_REQUEST = "prompt_request"
    PAYMENT = "payment"
    OPENAI_CALL = "openai_call"
    RPC_ACCOUNT_INFO = "rpc_getAccountInfo"
