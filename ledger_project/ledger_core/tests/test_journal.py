import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ledger_core.chart import STANDARD_CHART
from ledger_core.exceptions import (FailedPreconditionError,
                                    JournalValidationError, NotFoundError,
                                    UnbalancedJournalError)
from ledger_core.models import (AuditLog, Company, EntryStatus, EntryType,
                                JournalEntry, JournalLine, LedgerRecord)
from ledger_core.services import (create_journal_entry, deactivate_account,
                                  delete_journal_entry, entries_by_date_range,
                                  entries_by_status, entries_by_type,
                                  get_journal_entry, list_journal_entries,
                                  post_journal_entry, seed_chart_of_accounts,
                                  update_journal_entry, void_journal_entry)

from .helpers import JAN_5, LedgerTestMixin, d


class JournalEntryCreateTests(LedgerTestMixin, TestCase):
    def test_create_assigns_sequential_numbers_per_year(self):
        first = self.draft(JAN_5, ("1010", "100.00", 0), ("3000", 0, "100.00"))
        second = self.draft(JAN_5, ("1010", "50.00", 0), ("3000", 0, "50.00"))
        next_year = self.draft(datetime.date(2027, 1, 2), ("1010", "10.00", 0), ("3000", 0, "10.00"))

        self.assertEqual(first.entry_number, "JE-2026-001")
        self.assertEqual(second.entry_number, "JE-2026-002")
        # counter restarts every calendar year
        self.assertEqual(next_year.entry_number, "JE-2027-001")

    def test_create_stores_draft_with_totals_and_line_snapshots(self):
        entry = self.draft(
            JAN_5, ("1010", "250.00", 0), ("3000", 0, "250.00"), description="Owner investment"
        )

        self.assertEqual(entry.status, EntryStatus.DRAFT)
        self.assertEqual(entry.entry_type, EntryType.MANUAL)
        self.assertEqual(entry.total_debit, d("250.00"))
        self.assertEqual(entry.total_credit, d("250.00"))
        self.assertEqual(entry.created_by, self.user)

        lines = list(entry.lines.order_by("line_no"))
        self.assertEqual([line.line_no for line in lines], [1, 2])
        self.assertEqual(lines[0].account_code, "1010")
        self.assertEqual(lines[0].account_name, "Cash in Bank")
        # drafts never reach the ledger
        self.assertFalse(LedgerRecord.objects.filter(journal_entry=entry).exists())

    def test_unbalanced_entry_is_rejected_and_nothing_written(self):
        with self.assertRaises(UnbalancedJournalError) as ctx:
            self.draft(JAN_5, ("1010", "100.00", 0), ("3000", 0, "90.00"))

        self.assertIn("Journal entry is not balanced. Debits: 100.00, Credits: 90.00", ctx.exception.messages[0])
        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(JournalLine.objects.count(), 0)

    def test_five_hundred_against_three_hundred_fails_and_matching_lines_succeed(self):
        with self.assertRaises(UnbalancedJournalError):
            self.draft(JAN_5, ("1010", 500, 0), ("3000", 0, 300))

        entry = self.draft(JAN_5, ("1010", 500, 0), ("3000", 0, 500))
        self.assertEqual(entry.total_debit, d("500.00"))
        self.assertEqual(entry.total_credit, d("500.00"))

    def test_difference_within_tolerance_is_accepted(self):
        entry = self.draft(JAN_5, ("1010", "100.00", 0), ("3000", 0, "99.99"))
        self.assertEqual(entry.total_debit - entry.total_credit, d("0.01"))

    def test_amounts_are_rounded_half_up_to_cents(self):
        entry = self.draft(JAN_5, ("1010", "10.005", 0), ("3000", 0, "10.01"))
        self.assertEqual(entry.lines.get(line_no=1).debit, d("10.01"))

    def test_line_with_both_sides_is_rejected(self):
        with self.assertRaises(JournalValidationError):
            self.draft(JAN_5, ("1010", "10.00", "10.00"), ("3000", 0, 0))

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(JournalValidationError):
            self.draft(JAN_5, ("1010", "-10.00", 0), ("3000", "-10.00", 0))

    def test_missing_date_or_lines_is_rejected(self):
        with self.assertRaises(JournalValidationError):
            create_journal_entry(self.company, entry_date=None, lines=self.lines(("1010", 1, 0), ("3000", 0, 1)))
        with self.assertRaises(JournalValidationError):
            create_journal_entry(self.company, entry_date=JAN_5, lines=[])

    def test_invalid_date_string_is_rejected(self):
        with self.assertRaises(JournalValidationError):
            create_journal_entry(
                self.company, entry_date="2026-13-45", lines=self.lines(("1010", 1, 0), ("3000", 0, 1))
            )

    def test_unknown_account_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            create_journal_entry(
                self.company,
                entry_date=JAN_5,
                lines=[
                    {"account_id": 999999, "debit": "5.00", "credit": 0},
                    {"account_id": self.acc("3000").pk, "debit": 0, "credit": "5.00"},
                ],
            )
        self.assertIn("Account not found: 999999", str(ctx.exception))

    def test_balance_is_checked_before_account_existence(self):
        with self.assertRaises(UnbalancedJournalError):
            create_journal_entry(
                self.company,
                entry_date=JAN_5,
                lines=[
                    {"account_id": 999999, "debit": "5.00", "credit": 0},
                    {"account_id": self.acc("3000").pk, "debit": 0, "credit": "4.00"},
                ],
            )

    def test_account_of_another_company_is_not_found(self):
        other = Company.objects.create(name="Other Co")
        seed_chart_of_accounts(other)
        with self.assertRaises(NotFoundError):
            create_journal_entry(
                self.company,
                entry_date=JAN_5,
                lines=[
                    {"account_id": self.acc("1010", company=other).pk, "debit": "5.00", "credit": 0},
                    {"account_id": self.acc("3000").pk, "debit": 0, "credit": "5.00"},
                ],
            )

    def test_inactive_account_cannot_take_new_lines(self):
        deactivate_account(self.acc("1020"))
        with self.assertRaises(JournalValidationError):
            self.draft(JAN_5, ("1020", "5.00", 0), ("3000", 0, "5.00"))

    def test_create_writes_audit_log(self):
        entry = self.draft(JAN_5, ("1010", "5.00", 0), ("3000", 0, "5.00"))
        log = AuditLog.objects.get(object_type="JournalEntry", object_id=str(entry.pk))
        self.assertEqual(log.action, "create")
        self.assertEqual(log.company, self.company)
        self.assertEqual(log.user, self.user)


class JournalEntryLifecycleTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.entry = self.draft(JAN_5, ("1010", "100.00", 0), ("3000", 0, "100.00"))

    def test_update_draft_replaces_lines_and_totals(self):
        entry = update_journal_entry(
            self.entry,
            user=self.user,
            reference="REF-1",
            lines=self.lines(("1010", "40.00", 0), ("1000", "60.00", 0), ("3000", 0, "100.00")),
        )
        self.assertEqual(entry.reference, "REF-1")
        self.assertEqual(entry.lines.count(), 3)
        self.assertEqual(entry.total_debit, d("100.00"))

    def test_update_with_unbalanced_lines_keeps_old_lines(self):
        with self.assertRaises(UnbalancedJournalError):
            update_journal_entry(self.entry, lines=self.lines(("1010", "40.00", 0), ("3000", 0, "100.00")))
        self.assertEqual(self.entry.lines.count(), 2)

    def test_update_posted_entry_fails(self):
        post_journal_entry(self.entry)
        with self.assertRaises(FailedPreconditionError):
            update_journal_entry(self.entry, description="too late")

    def test_post_draft(self):
        entry = post_journal_entry(self.entry, user=self.user)

        self.assertEqual(entry.status, EntryStatus.POSTED)
        self.assertEqual(entry.posted_by, self.user)
        self.assertIsNotNone(entry.posted_at)
        self.assertEqual(LedgerRecord.objects.filter(journal_entry=entry).count(), 2)
        self.assertTrue(AuditLog.objects.filter(action="post", object_id=str(entry.pk)).exists())

    def test_post_twice_fails_without_duplicate_rows(self):
        post_journal_entry(self.entry)
        with self.assertRaises(FailedPreconditionError):
            post_journal_entry(self.entry)
        self.assertEqual(LedgerRecord.objects.filter(journal_entry=self.entry).count(), 2)

    def test_void_draft_fails(self):
        with self.assertRaises(FailedPreconditionError):
            void_journal_entry(self.entry)

    def test_void_posted_entry(self):
        post_journal_entry(self.entry)
        entry = void_journal_entry(self.entry, user=self.user, void_date=datetime.date(2026, 1, 9))

        self.assertEqual(entry.status, EntryStatus.VOID)
        self.assertEqual(entry.voided_by, self.user)
        self.assertEqual(LedgerRecord.objects.filter(journal_entry=entry).count(), 4)

        # void is terminal
        with self.assertRaises(FailedPreconditionError):
            void_journal_entry(entry)
        self.assertEqual(LedgerRecord.objects.filter(journal_entry=entry).count(), 4)
        with self.assertRaises(FailedPreconditionError):
            post_journal_entry(entry)

    def test_delete_draft(self):
        delete_journal_entry(self.entry, user=self.user)
        self.assertFalse(JournalEntry.objects.filter(pk=self.entry.pk).exists())
        self.assertFalse(JournalLine.objects.filter(journal_id=self.entry.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action="delete", object_id=str(self.entry.pk)).exists())

    def test_delete_posted_entry_fails(self):
        post_journal_entry(self.entry)
        with self.assertRaises(FailedPreconditionError):
            delete_journal_entry(self.entry)
        self.assertTrue(JournalEntry.objects.filter(pk=self.entry.pk).exists())

    def test_deleted_draft_number_is_not_reused(self):
        delete_journal_entry(self.entry)
        entry = self.draft(JAN_5, ("1010", "1.00", 0), ("3000", 0, "1.00"))
        self.assertEqual(entry.entry_number, "JE-2026-002")


class JournalEntryQueryTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.jan = self.book(JAN_5, ("1010", "100.00", 0), ("3000", 0, "100.00"))
        self.feb = self.draft(datetime.date(2026, 2, 3), ("6100", "20.00", 0), ("1010", 0, "20.00"))

    def test_get_entry_of_another_company_is_not_found(self):
        other = Company.objects.create(name="Other Co")
        with self.assertRaises(NotFoundError):
            get_journal_entry(other, self.jan.pk)

    def test_list_filters_and_paging(self):
        self.assertEqual(len(list_journal_entries(self.company)), 2)
        self.assertEqual([e.pk for e in list_journal_entries(self.company, status="posted")], [self.jan.pk])
        # newest first
        self.assertEqual([e.pk for e in list_journal_entries(self.company, limit=1)], [self.feb.pk])
        self.assertEqual([e.pk for e in list_journal_entries(self.company, limit=1, offset=1)], [self.jan.pk])

    def test_list_with_bad_paging_is_rejected(self):
        with self.assertRaises(JournalValidationError):
            list_journal_entries(self.company, limit="many")

    def test_by_status_and_type(self):
        self.assertEqual([e.pk for e in entries_by_status(self.company, "draft")], [self.feb.pk])
        self.assertEqual(len(entries_by_type(self.company, "manual")), 2)
        self.assertEqual(entries_by_type(self.company, "closing"), [])
        with self.assertRaises(JournalValidationError):
            entries_by_status(self.company, "archived")

    def test_by_date_range_is_inclusive(self):
        entries = entries_by_date_range(self.company, "2026-01-05", "2026-01-31")
        self.assertEqual([e.pk for e in entries], [self.jan.pk])
        with self.assertRaises(JournalValidationError):
            entries_by_date_range(self.company, "2026-02-01", "2026-01-01")
        with self.assertRaises(JournalValidationError):
            entries_by_date_range(self.company, None, "2026-01-01")


class JournalModelGuardTests(LedgerTestMixin, TestCase):
    def test_posted_entry_cannot_go_back_to_draft(self):
        entry = self.book(JAN_5, ("1010", "5.00", 0), ("3000", 0, "5.00"))
        entry.status = EntryStatus.DRAFT
        with self.assertRaises(ValidationError):
            entry.save()

    def test_lines_of_posted_entry_are_frozen(self):
        entry = self.book(JAN_5, ("1010", "5.00", 0), ("3000", 0, "5.00"))
        with self.assertRaises(ValidationError):
            JournalLine.objects.create(journal=entry, account=self.acc("1000"), debit=Decimal("1.00"))


class ChartSeedingTests(TestCase):
    def test_seeding_logs_the_number_of_accounts_created(self):
        company = Company.objects.create(name="Seed Co")
        with self.assertLogs("ledger_core.services.accounts", level="INFO") as logs:
            created = seed_chart_of_accounts(company)

        self.assertEqual(created, len(STANDARD_CHART))
        self.assertEqual(logs.records[-1].accounts_created, created)
        # a second run adds nothing
        self.assertEqual(seed_chart_of_accounts(company), 0)
