# Celery instance lives in ledger_project/celery.py and reads its
# CELERY_* options from Django settings
from .celery import celery_app

__all__ = ("celery_app",)

""" Start a worker with "celery -A ledger_project worker -l info".
    -A ledger_project imports this module, which exposes celery_app. """
