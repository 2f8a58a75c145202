"""
Balance Query Service.

Balances are always recomputed from LedgerRecord rows (aggregate queries),
never read from a cache, so they reflect the committed ledger exactly.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from ..models import Account, EntryType, LedgerRecord
from .posting import signed_movement

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def movements_by_account(company, *, start_date=None, end_date=None, exclude_closing=False):
    """
    {account_id: (total_debit, total_credit)} over rows with
    start_date <= transaction_date <= end_date (either bound optional).
    """
    qs = LedgerRecord.objects.filter(company=company)
    if start_date is not None:
        qs = qs.filter(transaction_date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(transaction_date__lte=end_date)
    if exclude_closing:
        qs = qs.exclude(journal_entry__entry_type=EntryType.CLOSING)
    rows = qs.values("account_id").annotate(debit=Sum("debit"), credit=Sum("credit")).order_by()
    return {row["account_id"]: (row["debit"] or ZERO, row["credit"] or ZERO) for row in rows}


def get_account_balance(account, as_of_date=None):
    """Normal-side balance of one account at end of `as_of_date` (default: today)."""
    as_of_date = as_of_date or timezone.localdate()
    agg = LedgerRecord.objects.filter(
        account=account, transaction_date__lte=as_of_date
    ).aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return {
        "account_id": account.pk,
        "code": account.code,
        "name": account.name,
        "normal_balance": account.normal_balance,
        "balance": signed_movement(account, agg["debit"], agg["credit"]),
        "as_of_date": as_of_date,
    }


def trial_balance_columns(account, balance):
    """(debit, credit) column amounts for a normal-side balance."""
    if account.is_debit_normal:
        return (balance, ZERO) if balance >= 0 else (ZERO, -balance)
    return (ZERO, balance) if balance >= 0 else (-balance, ZERO)


def get_trial_balance(company, as_of_date=None):
    """
    Every account with a non-zero balance at `as_of_date`, placed in the
    debit or credit column. An out-of-balance result is reported
    (balanced=False) and logged, never corrected.
    """
    as_of_date = as_of_date or timezone.localdate()
    movements = movements_by_account(company, end_date=as_of_date)
    accounts = Account.objects.for_company(company).filter(pk__in=movements.keys()).order_by("code")

    rows = []
    total_debits = ZERO
    total_credits = ZERO
    for account in accounts:
        debit, credit = movements[account.pk]
        balance = signed_movement(account, debit, credit)
        if balance == 0:
            continue
        debit_col, credit_col = trial_balance_columns(account, balance)
        total_debits += debit_col
        total_credits += credit_col
        rows.append({
            "account_id": account.pk,
            "code": account.code,
            "name": account.name,
            "ac_type": account.ac_type,
            "normal_balance": account.normal_balance,
            "debit": debit_col,
            "credit": credit_col,
        })

    difference = total_debits - total_credits
    balanced = abs(difference) <= settings.LEDGER_BALANCE_TOLERANCE
    if not balanced:
        logger.warning(
            "Trial balance out of balance",
            extra={"company": company.pk, "as_of": str(as_of_date), "difference": str(difference)},
        )
    return {
        "as_of_date": as_of_date,
        "accounts": rows,
        "totals": {
            "debits": total_debits,
            "credits": total_credits,
            "difference": difference,
            "balanced": balanced,
        },
    }


# ----------------------------
# General ledger read models
# ----------------------------
def _record_dict(record):
    return {
        "id": record.pk,
        "account_id": record.account_id,
        "account_code": record.account.code,
        "account_name": record.account.name,
        "journal_entry_id": record.journal_entry_id,
        "entry_number": record.entry_number,
        "transaction_date": record.transaction_date,
        "description": record.description,
        "debit": record.debit,
        "credit": record.credit,
        "running_balance": record.running_balance,
        "is_reversal": record.is_reversal,
    }


def _filtered(qs, start_date, end_date):
    if start_date is not None:
        qs = qs.filter(transaction_date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(transaction_date__lte=end_date)
    return qs


def get_account_ledger(account, start_date=None, end_date=None):
    """Rows of one account in insertion order, with period totals."""
    qs = _filtered(
        LedgerRecord.objects.filter(account=account).select_related("account").order_by("id"),
        start_date,
        end_date,
    )
    records = [_record_dict(r) for r in qs]
    total_debit = sum((r["debit"] for r in records), ZERO)
    total_credit = sum((r["credit"] for r in records), ZERO)
    return {
        "account_id": account.pk,
        "code": account.code,
        "name": account.name,
        "records": records,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "closing_balance": records[-1]["running_balance"] if records else get_account_balance(
            account, end_date)["balance"],
        "count": len(records),
    }


def get_general_ledger(company, start_date=None, end_date=None):
    """All ledger rows of the company grouped by account (by code)."""
    qs = _filtered(
        LedgerRecord.objects.filter(company=company).select_related("account").order_by("account__code", "id"),
        start_date,
        end_date,
    )
    grouped = {}
    for record in qs:
        bucket = grouped.setdefault(record.account_id, {
            "account_id": record.account_id,
            "code": record.account.code,
            "name": record.account.name,
            "records": [],
            "total_debit": ZERO,
            "total_credit": ZERO,
        })
        bucket["records"].append(_record_dict(record))
        bucket["total_debit"] += record.debit
        bucket["total_credit"] += record.credit
    return list(grouped.values())


def get_entry_ledger_rows(entry):
    """Ledger rows written for one journal entry (original and reversal)."""
    qs = LedgerRecord.objects.filter(journal_entry=entry).select_related("account").order_by("id")
    return [_record_dict(r) for r in qs]
