import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from ..exceptions import FailedPreconditionError, JournalValidationError
from ..models import (Account, AccountType, EntryType, LedgerRecord, Period,
                      PeriodStatus)
from .audit_helper import log_action

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

"""
    The transaction date decides the period.
    Open periods take postings; closed periods can be reopened;
    locked periods are final.
"""


def resolve_period(company, on_date):
    """Period covering `on_date`, or None when the company has none defined there."""
    return Period.objects.filter(
        company=company,
        start_date__lte=on_date,
        end_date__gte=on_date,
    ).first()


def ensure_period_open(company, on_date):
    """Dates outside any defined period are open."""
    period = resolve_period(company, on_date)
    if period is not None and period.status != PeriodStatus.OPEN:
        raise FailedPreconditionError(
            f"Cannot post to a {period.status} period ({period.name}) on {on_date}"
        )
    return period


def create_period(company, *, name, start_date, end_date, user=None):
    if not name or start_date is None or end_date is None:
        raise JournalValidationError("Period name, start date and end date are required")
    if start_date >= end_date:
        raise JournalValidationError("start_date must be before end_date")
    period = Period.objects.create(company=company, name=name, start_date=start_date, end_date=end_date)
    log_action(action="create", instance=period, user=user)
    return period


def _period_income_balances(period):
    """Net credit-minus-debit per revenue/expense account over the period."""
    rows = (
        LedgerRecord.objects.filter(
            company=period.company,
            transaction_date__gte=period.start_date,
            transaction_date__lte=period.end_date,
            account__ac_type__in=[AccountType.REVENUE, AccountType.EXPENSE],
        )
        .values("account_id")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
    )
    return {row["account_id"]: (row["credit"] or ZERO) - (row["debit"] or ZERO) for row in rows}


def _retained_earnings_account(company):
    from .accounts import find_account_by_role

    account = find_account_by_role(company, "retained_earnings", required=False)
    if account is None:
        # created on first close when the chart doesn't have one
        account = Account.objects.create(
            company=company,
            code=settings.LEDGER_RETAINED_EARNINGS_CODE,
            name="Retained Earnings",
            ac_type=AccountType.EQUITY,
            sub_type="Retained Earnings",
            normal_balance="credit",
        )
    return account


def close_period(period, *, user=None):
    """
    Open → closed. Posts a closing entry dated on the period's end date that
    zeroes every revenue and expense account for the period and moves the
    net into retained earnings.
    """
    from .journal import create_journal_entry, post_journal_entry

    with transaction.atomic():
        period = Period.objects.select_for_update().get(pk=period.pk)
        if period.status != PeriodStatus.OPEN:
            raise FailedPreconditionError("Only open periods can be closed")

        balances = _period_income_balances(period)
        lines = []
        net_income = ZERO
        for account_id, net_credit in sorted(balances.items()):
            if net_credit == 0:
                continue
            net_income += net_credit
            # reverse the period's net movement on each P&L account
            if net_credit > 0:
                lines.append({"account_id": account_id, "debit": net_credit, "credit": ZERO,
                              "description": f"Close {period.name}"})
            else:
                lines.append({"account_id": account_id, "debit": ZERO, "credit": -net_credit,
                              "description": f"Close {period.name}"})

        closing_entry = None
        if lines:
            retained = _retained_earnings_account(period.company)
            if net_income > 0:
                lines.append({"account_id": retained.pk, "debit": ZERO, "credit": net_income,
                              "description": "Net income to retained earnings"})
            elif net_income < 0:
                lines.append({"account_id": retained.pk, "debit": -net_income, "credit": ZERO,
                              "description": "Net loss to retained earnings"})
            closing_entry = create_journal_entry(
                period.company,
                entry_date=period.end_date,
                lines=lines,
                user=user,
                reference=f"CLOSE-{period.name}",
                description=f"Closing entry for {period.name}",
                entry_type=EntryType.CLOSING,
                source_type="period",
                source_id=period.pk,
                allow_inactive=True,
            )
            closing_entry = post_journal_entry(closing_entry, user=user)

        period.status = PeriodStatus.CLOSED
        period.closed_by = user if getattr(user, "pk", None) else None
        period.closed_at = timezone.now()
        period.closing_entry = closing_entry
        period.save()
        log_action(action="close_period", instance=period, user=user,
                   changes={"net_income": str(net_income)})

    logger.info(
        "Period closed",
        extra={"company": period.company_id, "period": period.name, "net_income": str(net_income)},
    )
    return period


def reopen_period(period, *, user=None):
    """
    Closed → open. The closing entry is voided with reversal rows dated on
    its own date, so the period's P&L balances come back intact.
    """
    from .journal import void_journal_entry

    with transaction.atomic():
        period = Period.objects.select_for_update().get(pk=period.pk)
        if period.status != PeriodStatus.CLOSED:
            raise FailedPreconditionError("Only closed periods can be reopened")

        # reopen first so a void dated inside this period is accepted
        period.status = PeriodStatus.OPEN
        period.closed_by = None
        period.closed_at = None
        closing_entry = period.closing_entry
        period.closing_entry = None
        period.save()

        if closing_entry is not None:
            void_journal_entry(closing_entry, user=user, void_date=closing_entry.date)
        log_action(action="reopen_period", instance=period, user=user)

    logger.info("Period reopened", extra={"company": period.company_id, "period": period.name})
    return period


def lock_period(period, *, user=None):
    """Closed → locked. Locked periods can't be reopened."""
    with transaction.atomic():
        period = Period.objects.select_for_update().get(pk=period.pk)
        if period.status != PeriodStatus.CLOSED:
            raise FailedPreconditionError("Only closed periods can be locked")
        period.status = PeriodStatus.LOCKED
        period.save()
        log_action(action="lock_period", instance=period, user=user)

    logger.info("Period locked", extra={"company": period.company_id, "period": period.name})
    return period

