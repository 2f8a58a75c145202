"""
Ledger Poster: turns journal lines into append-only LedgerRecord rows.

Running balances are kept per account in insertion order, oriented to the
account's normal balance (a debit raises a debit-normal account, a credit
raises a credit-normal one). Callers own the transaction: posting and
voiding run inside the journal manager's atomic block, so a failure half-way
leaves no rows behind.
"""
import logging
from decimal import Decimal

from django.db import transaction

from ..models import Account, LedgerRecord

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
VOID_SUFFIX = "-VOID"


def signed_movement(account, debit, credit):
    """Amount by which (debit, credit) moves the account's normal-side balance."""
    debit = debit or ZERO
    credit = credit or ZERO
    if account.is_debit_normal:
        return debit - credit
    return credit - debit


def last_running_balance(account):
    """Balance after the most recently inserted row for the account."""
    last = (
        LedgerRecord.objects.filter(account=account)
        .order_by("-id")
        .values_list("running_balance", flat=True)
        .first()
    )
    return last if last is not None else ZERO


def _lock_accounts(lines):
    # Every account of the entry, locked once and in pk order, so two
    # entries touching the same accounts queue instead of deadlocking.
    ids = sorted({line.account_id for line in lines})
    list(Account.objects.select_for_update().filter(pk__in=ids).order_by("pk"))


def _append(account, *, entry, entry_number, transaction_date, description, debit, credit, is_reversal=False):
    balance = last_running_balance(account) + signed_movement(account, debit, credit)
    return LedgerRecord.objects.create(
        company_id=entry.company_id,
        account=account,
        journal_entry=entry,
        entry_number=entry_number,
        transaction_date=transaction_date,
        description=description,
        debit=debit,
        credit=credit,
        running_balance=balance,
        is_reversal=is_reversal,
    )


def post_entry_to_ledger(entry):
    """Write one ledger row per journal line. Returns the created rows."""
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("post_entry_to_ledger must run inside transaction.atomic()")

    lines = list(entry.lines.select_related("account").order_by("line_no", "id"))
    _lock_accounts(lines)

    records = []
    for line in lines:
        records.append(
            _append(
                line.account,
                entry=entry,
                entry_number=entry.entry_number,
                transaction_date=entry.date,
                description=(line.description or entry.description)[:400],
                debit=line.debit,
                credit=line.credit,
            )
        )
    logger.debug(
        "Ledger rows written",
        extra={"company": entry.company_id, "entry": entry.entry_number, "rows": len(records)},
    )
    return records


def reverse_entry_in_ledger(entry, void_date):
    """
    Append one reversal row per original line: debit and credit swapped,
    dated on the void date, numbered "<entry_number>-VOID".
    The original rows stay exactly as they were.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("reverse_entry_in_ledger must run inside transaction.atomic()")

    lines = list(entry.lines.select_related("account").order_by("line_no", "id"))
    _lock_accounts(lines)

    records = []
    for line in lines:
        records.append(
            _append(
                line.account,
                entry=entry,
                entry_number=f"{entry.entry_number}{VOID_SUFFIX}",
                transaction_date=void_date,
                description=f"VOID: {line.description or entry.description}"[:400],
                debit=line.credit,
                credit=line.debit,
                is_reversal=True,
            )
        )
    logger.debug(
        "Reversal rows written",
        extra={"company": entry.company_id, "entry": entry.entry_number, "rows": len(records)},
    )
    return records
