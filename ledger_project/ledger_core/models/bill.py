from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .account import Account
from .entitymembership import Company
from .vendor import Vendor

ZERO = Decimal("0.00")


class BillStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    OPEN = "open", "Open"  # approved, payable booked
    PARTIAL = "partial", "Partially paid"
    PAID = "paid", "Paid"
    VOID = "void", "Void"


OPEN_BILL_STATUSES = (BillStatus.OPEN, BillStatus.PARTIAL)


class Bill(models.Model):
    """Supplier bill (AP side)."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="bills")

    bill_number = models.CharField(max_length=64)
    bill_date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=BillStatus.choices, default=BillStatus.DRAFT
    )

    # Debited on approval; falls back to the company's operating expense account
    expense_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT,
        related_name="bills",
    )

    total_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    amount_paid = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    balance_due = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    journal_entry = models.ForeignKey(
        "JournalEntry", null=True, blank=True, on_delete=models.SET_NULL,
        related_name="bills",
    )

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "status"], name="ix_bill_company_status"),
            models.Index(fields=["company", "vendor"], name="ix_bill_company_vendor"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "vendor", "bill_number"],
                name="uq_bill_company_vendor_number"
            )
        ]

    def __str__(self):
        return f"Bill {self.bill_number or self.pk}"

    def clean(self):
        if self.vendor_id and self.vendor.company_id != self.company_id:
            raise ValidationError("Bill vendor must belong to the same company.")
        if self.expense_account_id and self.expense_account.company_id != self.company_id:
            raise ValidationError("Bill expense account must belong to the same company.")
        if self.due_date and self.bill_date and self.due_date < self.bill_date:
            raise ValidationError("due_date cannot be before bill_date")
        if self.amount_paid > self.total_amount:
            raise ValidationError("amount_paid cannot exceed total_amount")

    def save(self, *args, **kwargs):
        self.balance_due = self.total_amount - self.amount_paid
        self.full_clean()
        return super().save(*args, **kwargs)
