"""
Journal Entry Manager: create / update / post / void / delete / query.

Lifecycle: draft --post--> posted --void--> void; draft --delete--> removed.
Every transition runs in one transaction with the entry row locked and
writes an AuditLog row.
"""
import datetime
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from ..exceptions import (FailedPreconditionError, JournalValidationError,
                          NotFoundError, UnbalancedJournalError)
from ..models import EntryStatus, EntryType, JournalEntry, JournalLine
from .accounts import resolve_line_accounts
from .audit_helper import log_action
from .periods import ensure_period_open
from .posting import post_entry_to_ledger, reverse_entry_in_ledger
from .sequences import next_entry_number

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


# ----------------------------
# Input normalization
# ----------------------------
def to_money(value, field="amount"):
    """Decimal rounded half-up to cents; None/"" count as zero."""
    if value in (None, ""):
        return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise JournalValidationError(f"Invalid {field}: {value!r}")
    if not amount.is_finite():
        raise JournalValidationError(f"Invalid {field}: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_date(value, field="date"):
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise JournalValidationError(f"Invalid {field}: {value!r}")
    return parsed


def _normalize_lines(lines):
    if not lines:
        raise JournalValidationError("Entry date and at least one line are required")

    normalized = []
    for idx, raw in enumerate(lines, start=1):
        account_id = raw.get("account_id")
        if account_id in (None, ""):
            raise JournalValidationError(f"Line {idx}: account is required")
        debit = to_money(raw.get("debit"), "debit")
        credit = to_money(raw.get("credit"), "credit")
        if debit < 0 or credit < 0:
            raise JournalValidationError(f"Line {idx}: amounts must not be negative")
        if debit > 0 and credit > 0:
            raise JournalValidationError(f"Line {idx}: a line cannot carry both a debit and a credit")
        if debit == 0 and credit == 0:
            raise JournalValidationError(f"Line {idx}: a debit or a credit is required")
        normalized.append({
            "account_id": account_id,
            "debit": debit,
            "credit": credit,
            "description": (raw.get("description") or "")[:400],
        })
    return normalized


def validate_entry(company, entry_date, lines, allow_inactive=False):
    """
    Shared by create and update. Returns (lines, accounts, total_debit, total_credit).
    Order of checks: required input, balance, then account existence.
    """
    if entry_date is None or not lines:
        raise JournalValidationError("Entry date and at least one line are required")

    lines = _normalize_lines(lines)
    total_debit = sum((line["debit"] for line in lines), ZERO)
    total_credit = sum((line["credit"] for line in lines), ZERO)

    # Enforce double-entry rule: debits = credits (within tolerance)
    if abs(total_debit - total_credit) > settings.LEDGER_BALANCE_TOLERANCE:
        raise UnbalancedJournalError(
            f"Journal entry is not balanced. Debits: {total_debit}, Credits: {total_credit}"
        )

    accounts = resolve_line_accounts(company, lines, allow_inactive=allow_inactive)
    return lines, accounts, total_debit, total_credit


def _write_lines(entry, lines, accounts):
    for line_no, line in enumerate(lines, start=1):
        account = accounts[line["account_id"]]
        JournalLine.objects.create(
            journal=entry,
            line_no=line_no,
            account=account,
            account_code=account.code,
            account_name=account.name,
            description=line["description"],
            debit=line["debit"],
            credit=line["credit"],
        )


# ----------------------------
# Commands
# ----------------------------
def create_journal_entry(
    company,
    *,
    entry_date,
    lines,
    user=None,
    reference="",
    description="",
    entry_type=EntryType.MANUAL,
    source_type="",
    source_id=None,
    allow_inactive=False,
):
    """
    Validate and persist a draft entry with the next entry number.

    lines: iterable of {"account_id", "debit", "credit", "description"}.
    Raises JournalValidationError / UnbalancedJournalError / NotFoundError;
    nothing is written when validation fails.
    """
    entry_date = to_date(entry_date, "entry date")
    lines, accounts, total_debit, total_credit = validate_entry(
        company, entry_date, list(lines or []), allow_inactive=allow_inactive
    )

    with transaction.atomic():
        entry = JournalEntry.objects.create(
            company=company,
            entry_number=next_entry_number(company, entry_date),
            date=entry_date,
            reference=reference or "",
            description=description or "",
            entry_type=entry_type,
            status=EntryStatus.DRAFT,
            total_debit=total_debit,
            total_credit=total_credit,
            source_type=source_type or "",
            source_id=source_id,
            created_by=user if getattr(user, "pk", None) else None,
        )
        _write_lines(entry, lines, accounts)
        log_action(
            action="create",
            instance=entry,
            user=user,
            changes={"entry_number": entry.entry_number, "total": str(total_debit)},
        )

    logger.info(
        "Journal entry created",
        extra={"company": company.pk, "entry_id": entry.pk, "entry_number": entry.entry_number,
               "entry_type": entry.entry_type},
    )
    return entry


UPDATABLE_FIELDS = ("date", "reference", "description")


def update_journal_entry(entry, *, user=None, **patch):
    """
    Patch a draft's date/reference/description and optionally replace its lines.
    Replacing lines re-runs the full create validation.
    """
    with transaction.atomic():
        locked = JournalEntry.objects.select_for_update().get(pk=entry.pk)
        if locked.status != EntryStatus.DRAFT:
            raise FailedPreconditionError("Only draft entries can be updated")

        changes = {}
        if "date" in patch:
            new_date = to_date(patch["date"], "entry date")
            if new_date is None:
                raise JournalValidationError("Entry date and at least one line are required")
            patch["date"] = new_date
        for field in UPDATABLE_FIELDS:
            if field in patch and getattr(locked, field) != patch[field]:
                changes[field] = str(patch[field])
                setattr(locked, field, patch[field] if patch[field] is not None else "")

        if patch.get("lines") is not None:
            lines, accounts, total_debit, total_credit = validate_entry(
                locked.company, locked.date, list(patch["lines"])
            )
            locked.lines.all().delete()
            _write_lines(locked, lines, accounts)
            locked.total_debit = total_debit
            locked.total_credit = total_credit
            changes["lines"] = len(lines)

        locked.save()
        log_action(action="update", instance=locked, user=user, changes=changes)

    logger.info(
        "Journal entry updated",
        extra={"company": locked.company_id, "entry_id": locked.pk, "entry_number": locked.entry_number},
    )
    return locked


def post_journal_entry(entry, *, user=None):
    """
    Draft → posted. Writes the ledger rows in the same transaction as the
    status change; any failure leaves the entry in draft with no rows.
    """
    with transaction.atomic():
        # Lock the row: two concurrent posts of one entry can't both pass the check
        locked = JournalEntry.objects.select_for_update().get(pk=entry.pk)
        if locked.status != EntryStatus.DRAFT:
            raise FailedPreconditionError("Only draft entries can be posted")

        ensure_period_open(locked.company, locked.date)

        if not locked.lines.exists():
            raise JournalValidationError("Entry date and at least one line are required")
        debit, credit = locked.compute_totals()
        if abs(debit - credit) > settings.LEDGER_BALANCE_TOLERANCE:
            raise UnbalancedJournalError(
                f"Journal entry is not balanced. Debits: {debit}, Credits: {credit}"
            )

        post_entry_to_ledger(locked)

        locked.status = EntryStatus.POSTED
        locked.posted_by = user if getattr(user, "pk", None) else None
        locked.posted_at = timezone.now()
        locked.save(update_fields=["status", "posted_by", "posted_at", "updated_at"])
        log_action(action="post", instance=locked, user=user)

    logger.info(
        "Journal entry posted",
        extra={"company": locked.company_id, "entry_id": locked.pk, "entry_number": locked.entry_number},
    )
    return locked


def void_journal_entry(entry, *, user=None, void_date=None):
    """
    Posted → void. Appends reversal rows dated on the void date (today by
    default); the original ledger rows are left untouched.
    """
    void_date = to_date(void_date, "void date") or timezone.localdate()

    with transaction.atomic():
        locked = JournalEntry.objects.select_for_update().get(pk=entry.pk)
        if locked.status != EntryStatus.POSTED:
            raise FailedPreconditionError("Only posted entries can be voided")

        ensure_period_open(locked.company, void_date)

        reverse_entry_in_ledger(locked, void_date)

        locked.status = EntryStatus.VOID
        locked.voided_by = user if getattr(user, "pk", None) else None
        locked.voided_at = timezone.now()
        locked.save(update_fields=["status", "voided_by", "voided_at", "updated_at"])
        log_action(action="void", instance=locked, user=user, changes={"void_date": void_date.isoformat()})

    logger.info(
        "Journal entry voided",
        extra={"company": locked.company_id, "entry_id": locked.pk, "entry_number": locked.entry_number},
    )
    return locked


def delete_journal_entry(entry, *, user=None):
    """Hard-delete a draft. Posted and void entries are permanent."""
    with transaction.atomic():
        locked = JournalEntry.objects.select_for_update().get(pk=entry.pk)
        if locked.status != EntryStatus.DRAFT:
            raise FailedPreconditionError("Only draft entries can be deleted")
        entry_id, number, company_id = locked.pk, locked.entry_number, locked.company_id
        log_action(action="delete", instance=locked, user=user, changes={"entry_number": number})
        locked.delete()

    logger.info(
        "Journal entry deleted",
        extra={"company": company_id, "entry_id": entry_id, "entry_number": number},
    )


# ----------------------------
# Queries
# ----------------------------
def _base_queryset(company):
    return (
        JournalEntry.objects.for_company(company)
        .select_related("created_by", "posted_by", "voided_by")
        .prefetch_related("lines")
        .order_by("-date", "-created_at", "-id")
    )


def get_journal_entry(company, entry_id):
    try:
        return _base_queryset(company).get(pk=entry_id)
    except (JournalEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Journal entry not found: {entry_id}")


def list_journal_entries(company, *, status=None, entry_type=None, limit=100, offset=0):
    qs = _base_queryset(company)
    if status:
        qs = qs.filter(status=_check_choice(status, EntryStatus, "status"))
    if entry_type:
        qs = qs.filter(entry_type=_check_choice(entry_type, EntryType, "entry type"))
    try:
        offset = max(int(offset or 0), 0)
        limit = max(int(limit or 100), 1)
    except (TypeError, ValueError):
        raise JournalValidationError("limit and offset must be integers")
    return list(qs[offset:offset + limit])


def entries_by_status(company, status):
    return list(_base_queryset(company).filter(status=_check_choice(status, EntryStatus, "status")))


def entries_by_type(company, entry_type):
    return list(_base_queryset(company).filter(entry_type=_check_choice(entry_type, EntryType, "entry type")))


def entries_by_date_range(company, start_date, end_date):
    start_date = to_date(start_date, "start date")
    end_date = to_date(end_date, "end date")
    if start_date is None or end_date is None:
        raise JournalValidationError("Start date and end date are required")
    if start_date > end_date:
        raise JournalValidationError("Start date must be on or before end date")
    return list(_base_queryset(company).filter(date__gte=start_date, date__lte=end_date))


def _check_choice(value, choices, label):
    value = str(value).lower()
    if value not in choices.values:
        raise JournalValidationError(f"Unknown {label}: {value}")
    return value
