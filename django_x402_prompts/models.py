from django.db import models
from django.db.models import Q, UniqueConstraint

from django_x402_prompts.choices import (
    PaymentRecordStatusTypes,
    PurchaseStatusTypes,
    RequestLogStatusTypes,
)


class RequestLog(models.Model):
    request_type = models.CharField(max_length=50, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    status = models.CharField(
        max_length=20,
        choices=RequestLogStatusTypes.choices,
        default=RequestLogStatusTypes.SUCCESS,
    )

    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created"]

    def __str__(self):
        return f"{self.request_type} - {self.status}"


class PaymentRecord(models.Model):
    sender_address = models.CharField(max_length=60)
    receiver_address = models.CharField(max_length=60)
    token_mint = models.CharField(max_length=64)
    amount = models.DecimalField(max_digits=30, decimal_places=9)
    amount_atomic = models.BigIntegerField()
    transaction_reference = models.CharField(max_length=128, db_index=True)
    status = models.CharField(max_length=10, choices=PaymentRecordStatusTypes.choices)
    details = models.JSONField(default=dict, blank=True)

    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            UniqueConstraint(
                fields=["transaction_reference"],
                condition=Q(status=PaymentRecordStatusTypes.CONFIRMED),
                name="unique_confirmed_transaction_reference",
            )
        ]

    def __str__(self):
        return f"{self.transaction_reference} - {self.status}"


class Purchase(models.Model):
    wallet_address = models.CharField(max_length=60, db_index=True)
    # one purchase per on-chain transfer
    transaction_reference = models.CharField(max_length=128, unique=True)
    goal = models.TextField()
    details = models.TextField(blank=True, default="")
    refined_prompt = models.TextField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    status = models.CharField(
        max_length=10,
        choices=PurchaseStatusTypes.choices,
        default=PurchaseStatusTypes.PENDING,
    )

    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.wallet_address} - {self.status}"
