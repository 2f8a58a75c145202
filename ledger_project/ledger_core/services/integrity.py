import logging
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from ..exceptions import LedgerIntegrityError
from ..models import Account, EntryStatus, JournalEntry, LedgerRecord
from .balances import get_trial_balance
from .posting import signed_movement

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def find_running_balance_breaks(company):
    """
    Replay every account's rows in insertion order; report rows whose stored
    running balance differs from the replayed one. Nothing is rewritten.
    """
    breaks = []
    for account in Account.objects.for_company(company).order_by("code"):
        expected = ZERO
        for record in LedgerRecord.objects.for_account(account).only(
            "id", "entry_number", "debit", "credit", "running_balance"
        ):
            expected += signed_movement(account, record.debit, record.credit)
            if record.running_balance != expected:
                breaks.append({
                    "account_id": account.pk,
                    "code": account.code,
                    "record_id": record.pk,
                    "entry_number": record.entry_number,
                    "stored": record.running_balance,
                    "expected": expected,
                })
    return breaks


def find_unbalanced_entries(company):
    """Posted/void entries whose ledger rows don't net to zero."""
    rows = (
        LedgerRecord.objects.filter(company=company)
        .values("journal_entry_id", "journal_entry__entry_number")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
        .order_by("journal_entry_id")
    )
    faults = []
    for row in rows:
        if (row["debit"] or ZERO) != (row["credit"] or ZERO):
            faults.append({
                "entry_id": row["journal_entry_id"],
                "entry_number": row["journal_entry__entry_number"],
                "debit": row["debit"],
                "credit": row["credit"],
            })

    # posted entries must have rows at all
    missing = (
        JournalEntry.objects.for_company(company)
        .filter(status__in=[EntryStatus.POSTED, EntryStatus.VOID], ledger_records__isnull=True)
        .values_list("pk", "entry_number")
    )
    for entry_id, number in missing:
        faults.append({"entry_id": entry_id, "entry_number": number, "debit": None, "credit": None})
    return faults


def check_ledger_integrity(company, as_of_date=None, raise_on_fault=False):
    """
    Run every consistency check against the committed ledger.
    Returns {"ok", "trial_balance", "balance_sheet", "running_balance_breaks",
    "unbalanced_entries"}; raises LedgerIntegrityError when asked and a check fails.
    """
    from .reports import generate_balance_sheet

    as_of_date = as_of_date or timezone.localdate()
    trial_balance = get_trial_balance(company, as_of_date)
    balance_sheet = generate_balance_sheet(company, as_of_date)
    breaks = find_running_balance_breaks(company)
    unbalanced = find_unbalanced_entries(company)

    faults = []
    if not trial_balance["totals"]["balanced"]:
        faults.append(f"trial balance difference {trial_balance['totals']['difference']}")
    if not balance_sheet["balanced"]:
        faults.append(f"balance sheet difference {balance_sheet['equation']['difference']}")
    if breaks:
        faults.append(f"{len(breaks)} running balance break(s)")
    if unbalanced:
        faults.append(f"{len(unbalanced)} unbalanced journal entries")

    result = {
        "ok": not faults,
        "as_of_date": as_of_date,
        "faults": faults,
        "trial_balance": trial_balance["totals"],
        "balance_sheet": balance_sheet["equation"],
        "running_balance_breaks": breaks,
        "unbalanced_entries": unbalanced,
    }
    if faults:
        logger.warning("Ledger integrity faults", extra={"company": company.pk, "faults": faults})
        if raise_on_fault:
            raise LedgerIntegrityError("; ".join(faults), faults=faults)
    return result
