"""
Report Engine: financial statements derived from posted ledger rows.

All amounts are Decimal. Reports read committed state only and never raise
on unbalanced books; they return `balanced` / `reconciled` flags instead.
Account grouping uses the free-text sub_type, matched case-insensitively.
"""
import datetime
import logging
import re
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from ..exceptions import JournalValidationError
from ..models import (OPEN_BILL_STATUSES, OPEN_INVOICE_STATUSES, Account,
                      AccountType, Bill, Invoice)
from .balances import get_trial_balance, movements_by_account
from .journal import to_date
from .posting import signed_movement

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _require_range(start_date, end_date):
    start_date = to_date(start_date, "start date")
    end_date = to_date(end_date, "end date")
    if start_date is None or end_date is None:
        raise JournalValidationError("Start date and end date are required")
    if start_date > end_date:
        raise JournalValidationError("Start date must be on or before end date")
    return start_date, end_date


def _matches(pattern, text):
    return re.search(pattern, text or "", re.IGNORECASE) is not None


def _accounts_by_id(company, ids):
    return {a.pk: a for a in Account.objects.for_company(company).filter(pk__in=ids).order_by("code")}


def _line(account, amount):
    return {
        "account_id": account.pk,
        "code": account.code,
        "name": account.name,
        "sub_type": account.sub_type,
        "amount": amount,
    }


def _total(lines):
    return sum((line["amount"] for line in lines), ZERO)


# ----------------------------
# Balance sheet
# ----------------------------
def _asset_group(account):
    if _matches(r"fixed", account.sub_type):
        return "fixed"
    if _matches(r"current", account.sub_type) and not _matches(r"non.?current", account.sub_type):
        return "current"
    return "other"


def _liability_group(account):
    if _matches(r"long", account.sub_type) or _matches(r"non.?current", account.sub_type):
        return "long_term"
    if _matches(r"current", account.sub_type):
        return "current"
    return "other"


def generate_balance_sheet(company, as_of_date=None):
    """
    Assets = Liabilities + Equity at end of `as_of_date`.

    Contra accounts (normal balance opposite to their type) reduce their
    section. Revenue and expense not yet closed show up as
    current_year_net_income (Jan 1 of the as-of year → as-of date) inside equity.
    """
    as_of_date = to_date(as_of_date, "as of date") or timezone.localdate()
    movements = movements_by_account(company, end_date=as_of_date)
    accounts = _accounts_by_id(company, movements.keys())

    assets = {"current": [], "fixed": [], "other": []}
    liabilities = {"current": [], "long_term": [], "other": []}
    equity = []

    for account in accounts.values():
        if account.ac_type not in (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY):
            continue
        balance = signed_movement(account, *movements[account.pk])
        if balance == 0:
            continue
        # contra: a positive contra balance reduces the section
        amount = -balance if account.is_contra else balance
        line = _line(account, amount)
        line["is_contra"] = account.is_contra
        if account.ac_type == AccountType.ASSET:
            assets[_asset_group(account)].append(line)
        elif account.ac_type == AccountType.LIABILITY:
            liabilities[_liability_group(account)].append(line)
        else:
            equity.append(line)

    year_start = datetime.date(as_of_date.year, 1, 1)
    current_year_net_income = _net_income(company, year_start, as_of_date, exclude_closing=False)

    total_assets = sum((_total(group) for group in assets.values()), ZERO)
    total_liabilities = sum((_total(group) for group in liabilities.values()), ZERO)
    total_equity = _total(equity) + current_year_net_income
    total_liabilities_and_equity = total_liabilities + total_equity
    difference = total_assets - total_liabilities_and_equity
    balanced = abs(difference) <= settings.LEDGER_BALANCE_TOLERANCE
    if not balanced:
        logger.warning(
            "Balance sheet does not balance",
            extra={"company": company.pk, "as_of": str(as_of_date), "difference": str(difference)},
        )

    return {
        "as_of_date": as_of_date,
        "assets": {
            "current_assets": assets["current"],
            "fixed_assets": assets["fixed"],
            "other_assets": assets["other"],
            "total_current_assets": _total(assets["current"]),
            "total_fixed_assets": _total(assets["fixed"]),
            "total_other_assets": _total(assets["other"]),
            "total": total_assets,
        },
        "liabilities": {
            "current_liabilities": liabilities["current"],
            "long_term_liabilities": liabilities["long_term"],
            "other_liabilities": liabilities["other"],
            "total_current_liabilities": _total(liabilities["current"]),
            "total_long_term_liabilities": _total(liabilities["long_term"]),
            "total_other_liabilities": _total(liabilities["other"]),
            "total": total_liabilities,
        },
        "equity": {
            "accounts": equity,
            "current_year_net_income": current_year_net_income,
            "total": total_equity,
        },
        "total_liabilities_and_equity": total_liabilities_and_equity,
        "balanced": balanced,
        "equation": {
            "assets": total_assets,
            "liabilities": total_liabilities,
            "equity": total_equity,
            "difference": difference,
        },
    }


# ----------------------------
# Income statement
# ----------------------------
def _revenue_bucket(account):
    if _matches(r"contra", account.sub_type):
        return "contra"
    if _matches(r"operating|service", account.sub_type):
        return "operating"
    if _matches(r"other|interest", account.sub_type):
        return "other"
    # unclassified: counted in totals and net income only
    return None


def _expense_bucket(account):
    if _matches(r"cost of (sales|goods)", account.sub_type):
        return "cost_of_sales"
    # checked before "operating": "Non-Operating Expense" contains "Operating"
    if _matches(r"non.?operating|tax", account.sub_type):
        return "non_operating"
    return "operating"


def _net_income(company, start_date, end_date, exclude_closing=True):
    movements = movements_by_account(
        company, start_date=start_date, end_date=end_date, exclude_closing=exclude_closing
    )
    accounts = _accounts_by_id(company, movements.keys())
    net = ZERO
    for account in accounts.values():
        debit, credit = movements[account.pk]
        if account.ac_type in (AccountType.REVENUE, AccountType.EXPENSE):
            net += credit - debit
    return net


def generate_income_statement(company, start_date, end_date):
    """
    Revenue and expense activity between start_date and end_date inclusive.
    Period-closing entries are left out so a closed period still reports
    its results. net_income is total revenue minus total expenses over all
    accounts, including revenue accounts that match no bucket.
    """
    start_date, end_date = _require_range(start_date, end_date)
    movements = movements_by_account(company, start_date=start_date, end_date=end_date, exclude_closing=True)
    accounts = _accounts_by_id(company, movements.keys())

    revenue = {"operating": [], "other": [], "contra": []}
    expenses = {"cost_of_sales": [], "operating": [], "non_operating": []}
    total_revenue = ZERO
    total_expenses = ZERO

    for account in accounts.values():
        debit, credit = movements[account.pk]
        if account.ac_type == AccountType.REVENUE:
            amount = credit - debit
            total_revenue += amount
            bucket = _revenue_bucket(account)
            if amount == 0 or bucket is None:
                continue
            # contra lines keep the credit-normal sign, so they come out negative
            revenue[bucket].append(_line(account, amount))
        elif account.ac_type == AccountType.EXPENSE:
            amount = debit - credit
            total_expenses += amount
            if amount == 0:
                continue
            expenses[_expense_bucket(account)].append(_line(account, amount))

    gross_revenue = _total(revenue["operating"])
    contra_revenue = _total(revenue["contra"])
    net_revenue = gross_revenue + contra_revenue
    cost_of_sales = _total(expenses["cost_of_sales"])
    gross_profit = net_revenue - cost_of_sales
    operating_expenses = _total(expenses["operating"])
    operating_income = gross_profit - operating_expenses
    other_income = _total(revenue["other"])
    non_operating_expenses = _total(expenses["non_operating"])
    net_income = total_revenue - total_expenses

    return {
        "start_date": start_date,
        "end_date": end_date,
        "revenue": {
            "operating_revenue": revenue["operating"],
            "contra_revenue": revenue["contra"],
            "other_income": revenue["other"],
            "total": total_revenue,
        },
        "expenses": {
            "cost_of_sales": expenses["cost_of_sales"],
            "operating_expenses": expenses["operating"],
            "non_operating_expenses": expenses["non_operating"],
            "total": total_expenses,
        },
        "summary": {
            "gross_revenue": gross_revenue,
            "contra_revenue": contra_revenue,
            "net_revenue": net_revenue,
            "cost_of_sales": cost_of_sales,
            "gross_profit": gross_profit,
            "operating_expenses": operating_expenses,
            "operating_income": operating_income,
            "other_income": other_income,
            "non_operating_expenses": non_operating_expenses,
            "net_income": net_income,
        },
    }


# ----------------------------
# Cash flow statement (indirect method)
# ----------------------------
def _cash_balance(company, cash_accounts, on_date):
    movements = movements_by_account(company, end_date=on_date)
    return sum(
        (signed_movement(acc, *movements.get(acc.pk, (ZERO, ZERO))) for acc in cash_accounts),
        ZERO,
    )


def generate_cash_flow_statement(company, start_date, end_date):
    """
    Net income, plus depreciation/amortization, plus working-capital changes
    (operating); fixed-asset purchases (investing); equity and long-term
    debt (financing). Beginning cash is measured at the end of the day before
    start_date, ending cash at end_date; `reconciled` says whether
    beginning + net flow equals ending within tolerance.
    """
    start_date, end_date = _require_range(start_date, end_date)
    day_before = start_date - datetime.timedelta(days=1)

    movements = movements_by_account(company, start_date=start_date, end_date=end_date, exclude_closing=True)
    accounts = _accounts_by_id(company, movements.keys())
    net_income = _net_income(company, start_date, end_date, exclude_closing=True)

    # Operating: non-cash expenses added back
    add_backs = []
    for account in accounts.values():
        if account.ac_type == AccountType.EXPENSE and _matches(r"depreciation|amortization", account.name):
            debit, credit = movements[account.pk]
            if debit - credit:
                add_backs.append(_line(account, debit - credit))

    # Operating: working capital (asset up = cash down, liability up = cash up)
    working_capital = []
    wc_codes = settings.LEDGER_WORKING_CAPITAL_CODES
    for account in Account.objects.for_company(company).filter(code__in=wc_codes).order_by("code"):
        debit, credit = movements.get(account.pk, (ZERO, ZERO))
        change = signed_movement(account, debit, credit)
        if change == 0:
            continue
        if account.ac_type == AccountType.ASSET:
            amount = -change
        elif account.ac_type == AccountType.LIABILITY:
            amount = change
        else:
            continue
        line = _line(account, amount)
        line["change"] = change
        working_capital.append(line)

    depreciation_amortization = _total(add_backs)
    operating_total = net_income + depreciation_amortization + _total(working_capital)

    # Investing: purchases/sales of debit-normal fixed assets
    investing = []
    for account in accounts.values():
        if (
            account.ac_type == AccountType.ASSET
            and _matches(r"fixed", account.sub_type)
            and account.is_debit_normal
        ):
            debit, credit = movements[account.pk]
            if debit - credit:
                investing.append(_line(account, -(debit - credit)))

    # Financing: owner's equity and long-term liabilities
    financing = []
    for account in accounts.values():
        is_long_term = account.ac_type == AccountType.LIABILITY and _matches(r"long", account.sub_type)
        if account.ac_type == AccountType.EQUITY or is_long_term:
            debit, credit = movements[account.pk]
            if credit - debit:
                financing.append(_line(account, credit - debit))

    investing_total = _total(investing)
    financing_total = _total(financing)
    net_cash_flow = operating_total + investing_total + financing_total

    cash_accounts = list(Account.objects.for_company(company).filter(code__in=settings.LEDGER_CASH_ACCOUNT_CODES))
    beginning_cash = _cash_balance(company, cash_accounts, day_before)
    ending_cash = _cash_balance(company, cash_accounts, end_date)
    calculated_ending_cash = beginning_cash + net_cash_flow
    difference = calculated_ending_cash - ending_cash
    reconciled = abs(difference) <= settings.LEDGER_BALANCE_TOLERANCE
    if not reconciled:
        logger.warning(
            "Cash flow does not reconcile",
            extra={"company": company.pk, "start": str(start_date), "end": str(end_date),
                   "difference": str(difference)},
        )

    return {
        "start_date": start_date,
        "end_date": end_date,
        "operating_activities": {
            "net_income": net_income,
            "adjustments": add_backs,
            "depreciation_amortization": depreciation_amortization,
            "working_capital_changes": working_capital,
            "total": operating_total,
        },
        "investing_activities": {"items": investing, "total": investing_total},
        "financing_activities": {"items": financing, "total": financing_total},
        "summary": {
            "net_cash_flow": net_cash_flow,
            "beginning_cash": beginning_cash,
            "ending_cash": ending_cash,
            "calculated_ending_cash": calculated_ending_cash,
            "difference": difference,
            "reconciled": reconciled,
        },
    }


# ----------------------------
# Trial balance
# ----------------------------
def generate_trial_balance(company, as_of_date=None):
    as_of_date = to_date(as_of_date, "as of date") or timezone.localdate()
    return get_trial_balance(company, as_of_date)


# ----------------------------
# AR / AP aging
# ----------------------------
AGING_BUCKETS = ("current", "days_1_30", "days_31_60", "days_61_90", "days_over_90")


def aging_bucket(days_overdue):
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "days_1_30"
    if days_overdue <= 60:
        return "days_31_60"
    if days_overdue <= 90:
        return "days_61_90"
    return "days_over_90"


def _empty_buckets():
    totals = {bucket: ZERO for bucket in AGING_BUCKETS}
    totals["total"] = ZERO
    return totals


def _aging(documents, as_of_date, *, party, number_attr, date_attr):
    parties = {}
    totals = _empty_buckets()
    count = 0
    for doc in documents:
        days_overdue = (as_of_date - doc.due_date).days
        bucket = aging_bucket(days_overdue)
        owner = getattr(doc, party)
        group = parties.setdefault(owner.pk, {
            "party_id": owner.pk,
            "party_name": owner.name,
            "documents": [],
            **_empty_buckets(),
        })
        group["documents"].append({
            "id": doc.pk,
            "number": getattr(doc, number_attr),
            "date": getattr(doc, date_attr),
            "due_date": doc.due_date,
            "total_amount": doc.total_amount,
            "balance_due": doc.balance_due,
            "days_overdue": max(days_overdue, 0),
            "bucket": bucket,
        })
        group[bucket] += doc.balance_due
        group["total"] += doc.balance_due
        totals[bucket] += doc.balance_due
        totals["total"] += doc.balance_due
        count += 1
    return list(parties.values()), totals, count


def generate_ar_aging_report(company, as_of_date=None):
    """Open receivables (sent / partially paid invoices) by days past due."""
    as_of_date = to_date(as_of_date, "as of date") or timezone.localdate()
    invoices = (
        Invoice.objects.for_company(company)
        .filter(status__in=OPEN_INVOICE_STATUSES, balance_due__gt=0, issue_date__lte=as_of_date)
        .select_related("customer")
        .order_by("customer__name", "due_date", "id")
    )
    customers, totals, count = _aging(
        invoices, as_of_date, party="customer", number_attr="invoice_number", date_attr="issue_date"
    )
    return {
        "as_of_date": as_of_date,
        "customers": customers,
        "totals": totals,
        "summary": {
            "total_invoices": count,
            "total_customers": len(customers),
            "total_outstanding": totals["total"],
        },
    }


def generate_ap_aging_report(company, as_of_date=None):
    """Open payables (approved / partially paid bills) by days past due."""
    as_of_date = to_date(as_of_date, "as of date") or timezone.localdate()
    bills = (
        Bill.objects.for_company(company)
        .filter(status__in=OPEN_BILL_STATUSES, balance_due__gt=0, bill_date__lte=as_of_date)
        .select_related("vendor")
        .order_by("vendor__name", "due_date", "id")
    )
    suppliers, totals, count = _aging(
        bills, as_of_date, party="vendor", number_attr="bill_number", date_attr="bill_date"
    )
    return {
        "as_of_date": as_of_date,
        "suppliers": suppliers,
        "totals": totals,
        "summary": {
            "total_bills": count,
            "total_suppliers": len(suppliers),
            "total_outstanding": totals["total"],
        },
    }
