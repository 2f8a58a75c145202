from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .account import Account
from .entitymembership import Company

ZERO = Decimal("0.00")


class EntryStatus(models.TextChoices):
    DRAFT = "draft", "Draft"  # still editable
    POSTED = "posted", "Posted"  # written to the ledger
    VOID = "void", "Void"  # reversed in the ledger


class EntryType(models.TextChoices):
    MANUAL = "manual", "Manual"
    INVOICE = "invoice", "Invoice"
    BILL = "bill", "Bill"
    PAYMENT = "payment", "Payment"
    CLOSING = "closing", "Period closing"


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):
    """
    One accounting transaction.

    Workflow: draft --post--> posted --void--> void, draft --delete--> gone.
    Header and lines can only change while the entry is a draft; the
    ledger rows written on post are never touched afterwards.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # JE-2026-001, allocated by services.sequences
    entry_number = models.CharField(max_length=40)

    # Business metadata
    date = models.DateField()
    reference = models.CharField(max_length=200, blank=True, default="")
    description = models.TextField(blank=True, default="")

    entry_type = models.CharField(
        max_length=10, choices=EntryType.choices, default=EntryType.MANUAL
    )
    status = models.CharField(
        max_length=10, choices=EntryStatus.choices, default=EntryStatus.DRAFT
    )

    # Cached from the lines at create/update time
    total_debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    # Optional back-reference to the business document that caused the entry
    source_type = models.CharField(max_length=50, blank=True, default="")
    source_id = models.PositiveBigIntegerField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="journal_entries_created",
    )
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="journal_entries_posted",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="journal_entries_voided",
    )
    voided_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "date"], name="ix_je_company_date"),
            models.Index(fields=["company", "status"], name="ix_je_company_status"),
            models.Index(fields=["company", "entry_type"], name="ix_je_company_type"),
            models.Index(fields=["company", "source_type", "source_id"], name="ix_je_company_source"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "entry_number"], name="uq_je_company_number"
            )
        ]
        ordering = ("-date", "-created_at")
        verbose_name_plural = "journal entries"

    def __str__(self):
        return f"{self.entry_number} {self.date} [{self.status}]"

    @property
    def is_draft(self):
        return self.status == EntryStatus.DRAFT

    # Aggregate all debit and credit amounts across the entry's lines
    def compute_totals(self):
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or ZERO,
            aggs["total_credit"] or ZERO,
        )

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return abs(debit - credit) <= settings.LEDGER_BALANCE_TOLERANCE

    # Control status changes
    ALLOWED_TRANSITIONS = {
        EntryStatus.DRAFT: [EntryStatus.POSTED],
        EntryStatus.POSTED: [EntryStatus.VOID],
        EntryStatus.VOID: [],
    }

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, [])

    def save(self, *args, **kwargs):
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).values("status").first()
            # posted/void never go back to draft, void is terminal
            if orig and orig["status"] != self.status and orig["status"] != EntryStatus.DRAFT:
                if not (orig["status"] == EntryStatus.POSTED and self.status == EntryStatus.VOID):
                    raise ValidationError(
                        f"Cannot go from {orig['status']} to {self.status}")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.pk:
            status = JournalEntry.objects.filter(pk=self.pk).values_list("status", flat=True).first()
            if status and status != EntryStatus.DRAFT:
                raise ValidationError("Only draft entries can be deleted")
        return super().delete(*args, **kwargs)


class JournalLine(models.Model):
    """
    One debit or credit against a GL account.
    Account code/name are copied at write time so the entry still reads
    correctly after the account is renamed.
    """

    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_no = models.PositiveIntegerField(default=1)

    # can't delete an account that lines point to
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="journal_lines")
    account_code = models.CharField(max_length=32, blank=True, default="")
    account_name = models.CharField(max_length=200, blank=True, default="")

    description = models.CharField(max_length=400, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    class Meta:
        ordering = ("journal", "line_no", "id")
        indexes = [
            models.Index(fields=["account"], name="ix_jl_account"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.journal_id} | {self.account_code} {self.account_name} | D:{self.debit} C:{self.credit}"

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError("A journal line cannot have both a debit and a credit")
        if self.debit == 0 and self.credit == 0:
            raise ValidationError("A journal line needs a non-zero debit or credit")

        # Prevent cross-company contamination
        if self.account_id and self.journal_id and self.account.company_id != self.journal.company_id:
            raise ValidationError("JournalLine.account must belong to the journal's company.")

        # Lines of posted/void entries are frozen
        if self.journal_id and not JournalEntry.objects.filter(
            pk=self.journal_id, status=EntryStatus.DRAFT
        ).exists():
            raise ValidationError("Cannot add or modify lines of a non-draft journal entry.")

    def save(self, *args, **kwargs):
        if self.account_id and not self.account_code:
            self.account_code = self.account.code
            self.account_name = self.account.name
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.journal_id).exclude(status=EntryStatus.DRAFT).exists():
            raise ValidationError("Cannot delete a line of a non-draft journal entry.")
        return super().delete(*args, **kwargs)
