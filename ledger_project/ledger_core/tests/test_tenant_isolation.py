import datetime
import json
from decimal import Decimal

import pytest
from django.test import RequestFactory, TestCase

from ledger_core.middleware import CurrentCompanyMiddleware
from ledger_core.models import (Account, Company, EntityMembership,
                                JournalEntry, LedgerRecord, User)
from ledger_core.services import (create_journal_entry, get_trial_balance,
                                  post_journal_entry, seed_chart_of_accounts)
from ledger_core.views import journal_entries


def book_capital(company, amount):
    cash = Account.objects.get(company=company, code="1010")
    capital = Account.objects.get(company=company, code="3000")
    entry = create_journal_entry(
        company,
        entry_date=datetime.date(2026, 1, 5),
        lines=[
            {"account_id": cash.pk, "debit": amount, "credit": 0},
            {"account_id": capital.pk, "debit": 0, "credit": amount},
        ],
    )
    return post_journal_entry(entry)


class TenantIsolationManagerTests(TestCase):
    def setUp(self):
        self.company_a = Company.objects.create(name="Company A")
        self.company_b = Company.objects.create(name="Company B", slug="com_b")
        seed_chart_of_accounts(self.company_a)
        seed_chart_of_accounts(self.company_b)

        # one posted entry per company
        self.je_a = book_capital(self.company_a, Decimal("200.00"))
        self.je_b = book_capital(self.company_b, Decimal("100.00"))

    def test_for_company_returns_only_that_company_objects(self):
        """Compare entry primary keys"""
        self.assertListEqual(
            list(
                JournalEntry.objects.for_company(self.company_a)
                .order_by("id")
                .values_list("pk", flat=True)
            ),
            [self.je_a.pk],
        )

    def test_entry_numbers_are_allocated_per_company(self):
        self.assertEqual(self.je_a.entry_number, "JE-2026-001")
        self.assertEqual(self.je_b.entry_number, "JE-2026-001")

    def test_ledger_rows_and_balances_stay_in_their_company(self):
        self.assertEqual(LedgerRecord.objects.for_company(self.company_a).count(), 2)
        totals = get_trial_balance(self.company_b, datetime.date(2026, 1, 31))["totals"]
        self.assertEqual(totals["debits"], Decimal("100.00"))

    def test_middleware_uses_session_company_only_for_members(self):
        user = User.objects.create_user(username="bob", password="pw", default_company=self.company_a)
        request = RequestFactory().get("/")
        request.user = user
        request.session = {"active_company_id": self.company_b.pk}

        CurrentCompanyMiddleware(lambda r: None).process_request(request)
        self.assertIsNone(request.company)

        EntityMembership.objects.create(user=user, company=self.company_b)
        CurrentCompanyMiddleware(lambda r: None).process_request(request)
        self.assertEqual(request.company, self.company_b)


@pytest.mark.django_db
def test_journal_entry_list_is_scoped_to_request_company():
    rf = RequestFactory()
    company_a = Company.objects.create(name="A")
    company_b = Company.objects.create(name="B")
    seed_chart_of_accounts(company_a)
    seed_chart_of_accounts(company_b)
    book_capital(company_a, Decimal("10.00"))
    book_capital(company_b, Decimal("20.00"))

    request = rf.get("/api/journal-entries/")
    request.company = company_a  # normally set by CurrentCompanyMiddleware
    request.user = User.objects.create_user(username="viewer", password="pw")
    response = journal_entries(request)

    assert response.status_code == 200
    data = json.loads(response.content)["data"]
    assert [row["total_debit"] for row in data] == ["10.00"]
