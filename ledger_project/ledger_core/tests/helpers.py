import datetime
from decimal import Decimal

from ledger_core.models import Account, Company, User
from ledger_core.services import (create_journal_entry, post_journal_entry,
                                  seed_chart_of_accounts)


def d(value):
    return Decimal(value)


class LedgerTestMixin:
    """Company with the standard chart and a user; helpers to book entries by account code."""

    company_name = "Test Co"

    def setUp(self):
        super().setUp()
        self.company = Company.objects.create(name=self.company_name)
        seed_chart_of_accounts(self.company)
        self.user = User.objects.create_user(
            username=f"user-{self.company.slug}", password="pw", default_company=self.company
        )

    def acc(self, code, company=None):
        return Account.objects.get(company=company or self.company, code=code)

    def lines(self, *rows):
        # rows: (code, debit, credit)
        return [
            {"account_id": self.acc(code).pk, "debit": debit, "credit": credit}
            for code, debit, credit in rows
        ]

    def draft(self, day, *rows, description="", **kwargs):
        return create_journal_entry(
            self.company,
            entry_date=day,
            lines=self.lines(*rows),
            user=self.user,
            description=description,
            **kwargs,
        )

    def book(self, day, *rows, description=""):
        """Create and post an entry in one go."""
        return post_journal_entry(self.draft(day, *rows, description=description), user=self.user)


JAN_5 = datetime.date(2026, 1, 5)
JAN_31 = datetime.date(2026, 1, 31)
