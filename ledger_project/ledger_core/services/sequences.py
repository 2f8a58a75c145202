import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from ..models import CompanySequence

logger = logging.getLogger(__name__)


def next_company_sequence(company, name: str) -> int:
    """
    Allocate the next value for a company/name counter.
    select_for_update serializes concurrent callers. Numbers of deleted
    drafts are not reused, so gaps are possible.
    """
    with transaction.atomic():
        try:
            seq = CompanySequence.objects.select_for_update().get(company=company, name=name)
        except CompanySequence.DoesNotExist:
            try:
                # savepoint so a lost race doesn't poison the outer transaction
                with transaction.atomic():
                    seq = CompanySequence.objects.create(company=company, name=name, next_value=1)
            except IntegrityError:
                seq = CompanySequence.objects.select_for_update().get(company=company, name=name)

        value = seq.next_value
        seq.next_value = value + 1
        seq.save(update_fields=["next_value"])
        return value


def next_entry_number(company, entry_date) -> str:
    """JE-YYYY-NNN, counter restarts every calendar year per company."""
    year = entry_date.year
    value = next_company_sequence(company, f"journal_entry:{year}")
    width = settings.LEDGER_ENTRY_NUMBER_WIDTH
    number = f"{settings.LEDGER_ENTRY_NUMBER_PREFIX}-{year}-{value:0{width}d}"
    logger.debug("Allocated entry number %s", number, extra={"company": company.pk})
    return number
