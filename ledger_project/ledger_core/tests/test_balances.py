import datetime

from django.test import TestCase

from ledger_core.services import (get_account_balance, get_account_ledger,
                                  get_entry_ledger_rows, get_general_ledger,
                                  get_trial_balance, void_journal_entry)

from .helpers import JAN_5, JAN_31, LedgerTestMixin, d


class AccountBalanceTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.book(JAN_5, ("1010", "1000.00", 0), ("3000", 0, "1000.00"))
        self.book(datetime.date(2026, 1, 20), ("6100", "300.00", 0), ("1010", 0, "300.00"))

    def test_balance_as_of_excludes_later_rows(self):
        self.assertEqual(get_account_balance(self.acc("1010"), JAN_5)["balance"], d("1000.00"))
        self.assertEqual(get_account_balance(self.acc("1010"), JAN_31)["balance"], d("700.00"))
        self.assertEqual(get_account_balance(self.acc("1010"), datetime.date(2025, 12, 31))["balance"], d("0.00"))

    def test_credit_normal_balance_is_positive(self):
        self.assertEqual(get_account_balance(self.acc("3000"), JAN_31)["balance"], d("1000.00"))

    def test_void_restores_balance_from_void_date(self):
        entry = self.book(JAN_31, ("6100", "50.00", 0), ("1010", 0, "50.00"))
        void_journal_entry(entry, void_date=datetime.date(2026, 2, 2))

        self.assertEqual(get_account_balance(self.acc("1010"), datetime.date(2026, 2, 1))["balance"], d("650.00"))
        self.assertEqual(get_account_balance(self.acc("1010"), datetime.date(2026, 2, 2))["balance"], d("700.00"))

    def test_account_ledger(self):
        ledger = get_account_ledger(self.acc("1010"))
        self.assertEqual(ledger["count"], 2)
        self.assertEqual(ledger["total_debit"], d("1000.00"))
        self.assertEqual(ledger["total_credit"], d("300.00"))
        self.assertEqual(ledger["closing_balance"], d("700.00"))

        january_5_only = get_account_ledger(self.acc("1010"), JAN_5, JAN_5)
        self.assertEqual(january_5_only["count"], 1)

    def test_general_ledger_groups_by_account_code(self):
        ledger = get_general_ledger(self.company)
        self.assertEqual([group["code"] for group in ledger], ["1010", "3000", "6100"])
        self.assertEqual(len(ledger[0]["records"]), 2)

    def test_entry_ledger_rows(self):
        entry = self.book(JAN_31, ("6100", "5.00", 0), ("1010", 0, "5.00"))
        rows = get_entry_ledger_rows(entry)
        self.assertEqual([r["account_code"] for r in rows], ["6100", "1010"])


class TrialBalanceTests(LedgerTestMixin, TestCase):
    def test_trial_balance_is_balanced_and_skips_zero_accounts(self):
        self.book(JAN_5, ("1010", "1000.00", 0), ("3000", 0, "1000.00"))
        self.book(JAN_5, ("1100", "400.00", 0), ("4000", 0, "400.00"))
        self.book(JAN_31, ("1010", "400.00", 0), ("1100", 0, "400.00"))

        tb = get_trial_balance(self.company, JAN_31)
        codes = [row["code"] for row in tb["accounts"]]
        # AR went back to zero
        self.assertEqual(codes, ["1010", "3000", "4000"])
        self.assertEqual(tb["totals"]["debits"], d("1400.00"))
        self.assertEqual(tb["totals"]["credits"], d("1400.00"))
        self.assertEqual(tb["totals"]["difference"], d("0.00"))
        self.assertTrue(tb["totals"]["balanced"])

    def test_contra_and_negative_balances_land_in_the_right_column(self):
        self.book(JAN_5, ("6500", "80.00", 0), ("1110", 0, "80.00"))
        # overdrawn bank account
        self.book(JAN_5, ("6100", "30.00", 0), ("1010", 0, "30.00"))

        rows = {row["code"]: row for row in get_trial_balance(self.company, JAN_31)["accounts"]}
        self.assertEqual((rows["1110"]["debit"], rows["1110"]["credit"]), (d("0.00"), d("80.00")))
        self.assertEqual((rows["1010"]["debit"], rows["1010"]["credit"]), (d("0.00"), d("30.00")))
        self.assertEqual(rows["6500"]["debit"], d("80.00"))
