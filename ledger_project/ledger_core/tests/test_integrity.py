from io import StringIO
from unittest import mock

from django.core.management import CommandError, call_command
from django.db import connection
from django.test import TestCase

from ledger_core.exceptions import LedgerIntegrityError
from ledger_core.models import LedgerRecord
from ledger_core.services import check_ledger_integrity
from ledger_core.services.integrity import (find_running_balance_breaks,
                                            find_unbalanced_entries)
from ledger_core.tasks import audit_all_ledgers, audit_ledger_integrity

from .helpers import JAN_5, JAN_31, LedgerTestMixin, d


def corrupt_running_balance(record, value):
    # bypass the append-only guards the way a bad migration or manual SQL would
    with connection.cursor() as cursor:
        cursor.execute(
            f"UPDATE {LedgerRecord._meta.db_table} SET running_balance = %s WHERE id = %s",
            [str(value), record.pk],
        )


class IntegrityCheckTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.book(JAN_5, ("1010", "100.00", 0), ("3000", 0, "100.00"))
        self.book(JAN_5, ("6100", "30.00", 0), ("1010", 0, "30.00"))

    def test_clean_ledger_passes(self):
        result = check_ledger_integrity(self.company, JAN_31)
        self.assertTrue(result["ok"])
        self.assertEqual(result["faults"], [])
        self.assertEqual(result["running_balance_breaks"], [])
        self.assertEqual(result["unbalanced_entries"], [])

    def test_running_balance_break_is_reported(self):
        record = LedgerRecord.objects.for_account(self.acc("1010")).first()
        corrupt_running_balance(record, d("90.00"))

        breaks = find_running_balance_breaks(self.company)
        # rows after the bad one were computed from the right balance
        self.assertEqual(len(breaks), 1)
        self.assertEqual(breaks[0]["record_id"], record.pk)
        self.assertEqual(breaks[0]["expected"], d("100.00"))

        with self.assertRaises(LedgerIntegrityError) as ctx:
            check_ledger_integrity(self.company, JAN_31, raise_on_fault=True)
        self.assertIn("running balance", ctx.exception.faults[0])

    def test_unbalanced_entry_is_reported(self):
        record = LedgerRecord.objects.for_account(self.acc("3000")).first()
        with connection.cursor() as cursor:
            cursor.execute(
                f"UPDATE {LedgerRecord._meta.db_table} SET credit = %s WHERE id = %s",
                ["90.00", record.pk],
            )

        unbalanced = find_unbalanced_entries(self.company)
        self.assertEqual([row["entry_number"] for row in unbalanced], ["JE-2026-001"])
        self.assertFalse(check_ledger_integrity(self.company, JAN_31)["ok"])


class IntegrityCommandAndTaskTests(LedgerTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.book(JAN_5, ("1010", "100.00", 0), ("3000", 0, "100.00"))

    def test_verify_ledger_command_ok(self):
        out = StringIO()
        call_command("verify_ledger", company=self.company.slug, as_of="2026-01-31", stdout=out)
        self.assertIn(f"{self.company.slug}: ok", out.getvalue())

    def test_verify_ledger_command_fails_on_fault(self):
        corrupt_running_balance(LedgerRecord.objects.first(), d("1.00"))
        with self.assertRaises(CommandError):
            call_command("verify_ledger", company=self.company.slug, stdout=StringIO())

    def test_verify_ledger_unknown_company(self):
        with self.assertRaises(CommandError):
            call_command("verify_ledger", company="nope", stdout=StringIO())

    def test_audit_task_returns_faults(self):
        self.assertEqual(audit_ledger_integrity(self.company.pk), [])
        self.assertIsNone(audit_ledger_integrity(987654))

    def test_audit_all_ledgers_fans_out(self):
        with mock.patch.object(audit_ledger_integrity, "delay") as delay:
            self.assertEqual(audit_all_ledgers(), 1)
        delay.assert_called_once_with(self.company.pk)
