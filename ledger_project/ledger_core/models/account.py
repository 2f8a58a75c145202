from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


class AccountType(models.TextChoices):
    # Classify general ledger accounts: Balance Sheet vs P&L
    ASSET = "asset", "Asset"
    LIABILITY = "liability", "Liability"
    EQUITY = "equity", "Equity"
    REVENUE = "revenue", "Revenue"
    EXPENSE = "expense", "Expense"


class NormalBalance(models.TextChoices):
    # Side on which the account normally increases
    DEBIT = "debit", "Debit"
    CREDIT = "credit", "Credit"


# Assets/Expenses → Debit, Liabilities/Equity/Revenue → Credit
EXPECTED_NORMAL_BALANCE = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}


class Account(models.Model):
    """
    Ledger account in the Chart of Accounts.
    - code is unique per company
    - ac_type decides the statement (BS vs P&L)
    - sub_type is a free-text grouping tag ("Current Asset", "Long-term Liability",
      "Contra Revenue", ...) the report engine matches on
    - normal_balance orients running balances; an account whose normal balance
      is opposite to its type's is a contra account
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)  # "Cash on Hand", "Accounts Payable"
    ac_type = models.CharField(max_length=10, choices=AccountType.choices)
    sub_type = models.CharField(max_length=100, blank=True, default="")
    normal_balance = models.CharField(
        max_length=6,
        choices=NormalBalance.choices,
        default=NormalBalance.DEBIT,
    )
    description = models.TextField(blank=True, default="")

    # "soft delete": hidden from new postings, history preserved
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "ac_type"], name="ix_account_company_type"),
            models.Index(fields=["company", "code"], name="ix_account_company_code"),
        ]
        constraints = [
            # Codes repeat across companies but must be unique within one
            models.UniqueConstraint(
                fields=["company", "code"], name="uq_company_account_code"
            )
        ]
        ordering = ("company", "code")

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def expected_normal_balance(self):
        return EXPECTED_NORMAL_BALANCE[self.ac_type]

    @property
    def is_contra(self):
        # e.g. Accumulated Depreciation (asset, credit), Sales Returns (revenue, debit)
        return self.normal_balance != self.expected_normal_balance

    @property
    def is_debit_normal(self):
        return self.normal_balance == NormalBalance.DEBIT

    def clean(self):
        if self.ac_type not in EXPECTED_NORMAL_BALANCE:
            raise ValidationError(f"Unknown account type: {self.ac_type}")
        if not (self.code or "").strip():
            raise ValidationError("Account code is required")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        # History must survive: deactivate instead
        from .journal import JournalLine
        from .ledger import LedgerRecord

        if (
            JournalLine.objects.filter(account=self).exists()
            or LedgerRecord.objects.filter(account=self).exists()
        ):
            raise ValidationError(
                "Cannot delete an account that has journal lines or ledger records; deactivate it instead."
            )
        return super().delete(*args, **kwargs)
