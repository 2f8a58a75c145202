import datetime
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import connection, transaction
from django.test import TestCase
from django.test.utils import CaptureQueriesContext

from ledger_core.models import EntryStatus, JournalEntry, LedgerRecord
from ledger_core.services import (post_journal_entry, update_journal_entry,
                                  void_journal_entry)
from ledger_core.services import posting

from .helpers import JAN_5, LedgerTestMixin, d


class RunningBalanceTests(LedgerTestMixin, TestCase):
    def rows(self, code):
        return list(
            LedgerRecord.objects.for_account(self.acc(code)).values_list("debit", "credit", "running_balance")
        )

    def test_debit_normal_account_rises_with_debits(self):
        self.book(JAN_5, ("1010", "1000.00", 0), ("3000", 0, "1000.00"))
        self.book(JAN_5, ("6100", "300.00", 0), ("1010", 0, "300.00"))

        self.assertEqual(
            self.rows("1010"),
            [(d("1000.00"), d("0.00"), d("1000.00")), (d("0.00"), d("300.00"), d("700.00"))],
        )

    def test_credit_normal_account_rises_with_credits(self):
        self.book(JAN_5, ("1100", "500.00", 0), ("4000", 0, "500.00"))
        self.book(JAN_5, ("4000", "50.00", 0), ("1100", 0, "50.00"))

        self.assertEqual([row[2] for row in self.rows("4000")], [d("500.00"), d("450.00")])

    def test_contra_account_follows_its_own_normal_balance(self):
        # allowance for doubtful accounts: asset, credit-normal
        self.book(JAN_5, ("6500", "80.00", 0), ("1110", 0, "80.00"))
        self.assertEqual(self.rows("1110")[0][2], d("80.00"))

    def test_backdated_entry_follows_insertion_order(self):
        self.book(datetime.date(2026, 1, 20), ("1010", "100.00", 0), ("3000", 0, "100.00"))
        self.book(datetime.date(2026, 1, 10), ("1010", "40.00", 0), ("3000", 0, "40.00"))

        records = list(LedgerRecord.objects.for_account(self.acc("1010")))
        self.assertEqual([r.transaction_date.day for r in records], [20, 10])
        self.assertEqual([r.running_balance for r in records], [d("100.00"), d("140.00")])

    def test_rows_copy_entry_number_date_and_line_description(self):
        entry = self.draft(JAN_5, ("1010", "10.00", 0), ("3000", 0, "10.00"), description="Seed money")
        update_journal_entry(entry, lines=[
            {"account_id": self.acc("1010").pk, "debit": "10.00", "credit": 0, "description": "Deposit"},
            {"account_id": self.acc("3000").pk, "debit": 0, "credit": "10.00"},
        ])
        post_journal_entry(entry)

        records = list(LedgerRecord.objects.filter(journal_entry=entry).order_by("id"))
        self.assertEqual({r.entry_number for r in records}, {"JE-2026-001"})
        self.assertEqual({r.transaction_date for r in records}, {JAN_5})
        # line description wins, entry description is the fallback
        self.assertEqual([r.description for r in records], ["Deposit", "Seed money"])
        self.assertEqual({r.company_id for r in records}, {self.company.pk})


class VoidReversalTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.entry = self.book(JAN_5, ("1010", "250.00", 0), ("3000", 0, "250.00"))
        self.originals = list(
            LedgerRecord.objects.filter(journal_entry=self.entry).values()
        )

    def test_void_appends_swapped_reversal_rows(self):
        void_date = datetime.date(2026, 2, 1)
        void_journal_entry(self.entry, void_date=void_date)

        reversals = list(LedgerRecord.objects.filter(journal_entry=self.entry, is_reversal=True).order_by("id"))
        self.assertEqual(len(reversals), 2)
        self.assertEqual({r.entry_number for r in reversals}, {"JE-2026-001-VOID"})
        self.assertEqual({r.transaction_date for r in reversals}, {void_date})
        cash, capital = reversals
        self.assertEqual((cash.debit, cash.credit), (d("0.00"), d("250.00")))
        self.assertEqual((capital.debit, capital.credit), (d("250.00"), d("0.00")))
        self.assertTrue(cash.description.startswith("VOID: "))
        # balances return to zero
        self.assertEqual(cash.running_balance, d("0.00"))
        self.assertEqual(capital.running_balance, d("0.00"))

    def test_void_leaves_original_rows_untouched(self):
        void_journal_entry(self.entry, void_date=datetime.date(2026, 2, 1))
        after = list(
            LedgerRecord.objects.filter(journal_entry=self.entry, is_reversal=False).values()
        )
        self.assertEqual(after, self.originals)


class LedgerImmutabilityTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.book(JAN_5, ("1010", "10.00", 0), ("3000", 0, "10.00"))
        self.record = LedgerRecord.objects.first()

    def test_record_cannot_be_updated(self):
        self.record.debit = d("999.00")
        with self.assertRaises(ValidationError):
            self.record.save()

    def test_record_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.record.delete()
        self.assertEqual(LedgerRecord.objects.count(), 2)

    def test_bulk_update_and_delete_are_refused(self):
        with self.assertRaises(ValidationError):
            LedgerRecord.objects.filter(company=self.company).update(debit=0)
        with self.assertRaises(ValidationError):
            LedgerRecord.objects.filter(company=self.company).delete()


class PostingAtomicityTests(LedgerTestMixin, TestCase):
    def test_failure_mid_posting_leaves_entry_draft_without_rows(self):
        entry = self.draft(
            JAN_5, ("1010", "60.00", 0), ("1000", "40.00", 0), ("3000", 0, "100.00")
        )
        real_append = posting._append
        calls = []

        def fail_on_second_row(*args, **kwargs):
            calls.append(1)
            if len(calls) == 2:
                raise RuntimeError("disk full")
            return real_append(*args, **kwargs)

        with mock.patch("ledger_core.services.posting._append", side_effect=fail_on_second_row):
            with self.assertRaises(RuntimeError):
                post_journal_entry(entry)

        entry.refresh_from_db()
        self.assertEqual(entry.status, EntryStatus.DRAFT)
        self.assertIsNone(entry.posted_at)
        self.assertFalse(LedgerRecord.objects.filter(journal_entry=entry).exists())

        # the entry posts cleanly once the fault is gone
        post_journal_entry(entry)
        self.assertEqual(LedgerRecord.objects.filter(journal_entry=entry).count(), 3)
        self.assertEqual(JournalEntry.objects.get(pk=entry.pk).status, EntryStatus.POSTED)

    def test_accounts_are_locked_once_in_key_order(self):
        # lines listed revenue first, cash second
        entry = self.draft(JAN_5, ("4000", 0, "75.00"), ("1010", "75.00", 0))
        account_ids = sorted([self.acc("4000").pk, self.acc("1010").pk])

        with mock.patch.object(posting, "_lock_accounts", wraps=posting._lock_accounts) as lock:
            with CaptureQueriesContext(connection) as ctx, transaction.atomic():
                posting.post_entry_to_ledger(entry)

        lock.assert_called_once()
        self.assertEqual(sorted({line.account_id for line in lock.call_args.args[0]}), account_ids)
        account_queries = [q["sql"] for q in ctx.captured_queries if 'FROM "ledger_core_account"' in q["sql"]]
        self.assertEqual(len(account_queries), 1)
        self.assertIn("ORDER BY", account_queries[0])
