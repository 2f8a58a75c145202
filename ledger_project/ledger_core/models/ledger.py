from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import LedgerRecordManager
from .account import Account
from .entitymembership import Company
from .journal import JournalEntry

ZERO = Decimal("0.00")


class LedgerRecord(models.Model):
    """
    Append-only posting of one journal line to one account.

    running_balance is the account's balance after this row, oriented to the
    account's normal balance, computed from the row inserted just before it
    for the same account. Voiding appends reversal rows ("<number>-VOID");
    existing rows are never edited or removed.
    """

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="ledger_records")
    journal_entry = models.ForeignKey(
        JournalEntry, on_delete=models.PROTECT, related_name="ledger_records"
    )
    entry_number = models.CharField(max_length=48)
    transaction_date = models.DateField()
    description = models.CharField(max_length=400, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    running_balance = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    is_reversal = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = LedgerRecordManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "transaction_date"], name="ix_ledger_company_date"),
            models.Index(fields=["account", "id"], name="ix_ledger_account_id"),
            models.Index(fields=["journal_entry"], name="ix_ledger_entry"),
        ]
        ordering = ("id",)

    def __str__(self):
        return f"{self.entry_number} {self.account.code} D:{self.debit} C:{self.credit} = {self.running_balance}"

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Ledger records are immutable and cannot be updated.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Ledger records are immutable and cannot be deleted.")
