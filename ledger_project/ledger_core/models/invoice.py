from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .customer import Customer
from .entitymembership import Company

ZERO = Decimal("0.00")


class InvoiceStatus(models.TextChoices):
    DRAFT = "draft", "Draft"  # not yet issued, no journal entry
    SENT = "sent", "Sent"  # issued, receivable booked
    PARTIAL = "partial", "Partially paid"
    PAID = "paid", "Paid"
    VOID = "void", "Void"


# Statuses that still carry an open receivable
OPEN_INVOICE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIAL)


class Invoice(models.Model):
    """
    Customer invoice. Only the fields the ledger needs: amounts for the
    revenue entry, balance_due and due_date for aging, and the journal
    entry that booked it.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="invoices")

    invoice_number = models.CharField(max_length=64)  # "INV-2026-001"
    issue_date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=InvoiceStatus.choices, default=InvoiceStatus.DRAFT
    )

    subtotal = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    tax_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    amount_paid = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    # total_amount - amount_paid, kept in sync on save
    balance_due = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    # Journal entry that booked the receivable
    journal_entry = models.ForeignKey(
        "JournalEntry", null=True, blank=True, on_delete=models.SET_NULL,
        related_name="invoices",
    )

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "status"], name="ix_invoice_company_status"),
            models.Index(fields=["company", "customer"], name="ix_invoice_company_customer"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "invoice_number"],
                name="uq_invoice_company_number"
            )
        ]

    def __str__(self):
        return f"Inv {self.invoice_number or self.pk}"

    def clean(self):
        if self.customer_id and self.customer.company_id != self.company_id:
            raise ValidationError("Invoice customer must belong to the same company.")
        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError("due_date cannot be before issue_date")
        if self.amount_paid > self.total_amount:
            raise ValidationError("amount_paid cannot exceed total_amount")

    def save(self, *args, **kwargs):
        # total defaults to subtotal + tax when not given
        if not self.total_amount:
            self.total_amount = (self.subtotal or ZERO) + (self.tax_amount or ZERO)
        self.balance_due = self.total_amount - self.amount_paid
        self.full_clean()
        return super().save(*args, **kwargs)
