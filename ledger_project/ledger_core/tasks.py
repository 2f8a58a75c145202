import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def audit_ledger_integrity(company_id):
    """Re-check a company's ledger and log any fault. Returns the fault list."""
    # import models lazily to avoid circular imports at module import time
    from .models import Company
    from .services.integrity import check_ledger_integrity

    try:
        company = Company.objects.get(pk=company_id)
    except Company.DoesNotExist:
        logger.warning("Integrity audit skipped, unknown company", extra={"company": company_id})
        return None

    try:
        result = check_ledger_integrity(company)
    except Exception:
        logger.exception("Integrity audit failed", extra={"company": company_id})
        raise

    if result["ok"]:
        logger.info("Ledger integrity ok", extra={"company": company_id})
    return result["faults"]


@shared_task
def audit_all_ledgers():
    """Fan out one audit per company (schedule with celery beat)."""
    from .models import Company

    company_ids = list(Company.objects.values_list("pk", flat=True))
    for company_id in company_ids:
        audit_ledger_integrity.delay(company_id)
    return len(company_ids)
