import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Q

from ..chart import STANDARD_CHART
from ..exceptions import JournalValidationError, NotFoundError
from ..models import Account, AccountType
from .audit_helper import log_action

logger = logging.getLogger(__name__)


def get_account(company, account_id):
    try:
        return Account.objects.for_company(company).get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Account not found: {account_id}")


def resolve_line_accounts(company, lines, allow_inactive=False):
    """
    Map every account id referenced by `lines` to its Account.
    Unknown ids (or ids of another company) raise NotFoundError,
    deactivated accounts can't take new postings unless `allow_inactive`
    (period closing still has to zero them).
    """
    ids = {line["account_id"] for line in lines}
    found = {
        acc.pk: acc
        for acc in Account.objects.for_company(company).filter(pk__in=[i for i in ids if str(i).isdigit()])
    }
    resolved = {}
    for account_id in ids:
        acc = found.get(int(account_id)) if str(account_id).isdigit() else None
        if acc is None:
            raise NotFoundError(f"Account not found: {account_id}")
        if not acc.is_active and not allow_inactive:
            raise JournalValidationError(f"Account {acc.code} is inactive")
        resolved[account_id] = acc
    return resolved


# Control accounts used by automatic postings.
# Each role is a list of filters tried in order, first hit wins.
def _role_filters():
    cash_codes = settings.LEDGER_CASH_ACCOUNT_CODES
    return {
        "cash": [
            Q(ac_type=AccountType.ASSET, code__in=cash_codes, normal_balance="debit"),
            Q(ac_type=AccountType.ASSET, name__iregex=r"cash|bank"),
        ],
        "receivable": [
            Q(ac_type=AccountType.ASSET, name__iregex=r"receivable"),
        ],
        "payable": [
            Q(ac_type=AccountType.LIABILITY, name__iregex=r"accounts payable"),
            Q(ac_type=AccountType.LIABILITY, name__iregex=r"payable") & ~Q(name__iregex=r"tax"),
        ],
        "revenue": [
            Q(ac_type=AccountType.REVENUE, sub_type__iregex=r"operating|service", normal_balance="credit"),
            Q(ac_type=AccountType.REVENUE, normal_balance="credit"),
        ],
        "sales_tax": [
            Q(ac_type=AccountType.LIABILITY, name__iregex=r"(sales|output) tax|vat"),
        ],
        "expense": [
            Q(ac_type=AccountType.EXPENSE, sub_type__iregex=r"^operating", name__iregex=r"general"),
            Q(ac_type=AccountType.EXPENSE, sub_type__iregex=r"^operating"),
        ],
        "retained_earnings": [
            Q(ac_type=AccountType.EQUITY, code=settings.LEDGER_RETAINED_EARNINGS_CODE),
            Q(ac_type=AccountType.EQUITY, sub_type__iregex=r"retained earnings"),
            Q(ac_type=AccountType.EQUITY, name__iregex=r"retained earnings"),
        ],
    }


def find_account_by_role(company, role, required=True):
    filters = _role_filters().get(role)
    if filters is None:
        raise ValueError(f"Unknown account role: {role}")
    qs = Account.objects.active(company).order_by("code")
    for condition in filters:
        account = qs.filter(condition).first()
        if account is not None:
            return account
    if required:
        raise NotFoundError(f"No {role.replace('_', ' ')} account configured for {company}")
    return None


def deactivate_account(account, user=None):
    """Accounts with history are never deleted, only hidden from new postings."""
    if not account.is_active:
        return account
    account.is_active = False
    account.save(update_fields=["is_active"])
    log_action(action="deactivate", instance=account, user=user)
    logger.info("Account deactivated", extra={"company": account.company_id, "account": account.code})
    return account


@transaction.atomic
def seed_chart_of_accounts(company, chart=None):
    """Install the standard chart; existing codes are left alone. Returns the number created."""
    created = 0
    for code, name, ac_type, sub_type, normal_balance in chart or STANDARD_CHART:
        _, was_created = Account.objects.get_or_create(
            company=company,
            code=code,
            defaults={
                "name": name,
                "ac_type": ac_type,
                "sub_type": sub_type,
                "normal_balance": normal_balance,
            },
        )
        created += int(was_created)
    logger.info("Chart of accounts seeded", extra={"company": company.pk, "accounts_created": created})
    return created
