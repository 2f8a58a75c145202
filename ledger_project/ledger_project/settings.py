import os
import sys
from decimal import Decimal
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv

from .logging_config import get_logging_config

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("SECRET_KEY", "changeme")
DEBUG = os.getenv("DEBUG", "True") == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",")

# True under pytest / manage.py test
TESTING = (
    "PYTEST_CURRENT_TEST" in os.environ
    or "pytest" in sys.modules
    or "test" in sys.argv
)

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "ledger_core.apps.LedgerCoreConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    # sets request.company for the ledger views
    "ledger_core.middleware.CurrentCompanyMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "ledger_project.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "ledger_project.wsgi.application"

# =============================================================================
# Database
# =============================================================================
# PostgreSQL in production (real row locks for select_for_update),
# SQLite file for local work.
DATABASES = {
    "default": dj_database_url.config(
        env="DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
    )
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Before the very first migrate, the custom user must be configured
AUTH_USER_MODEL = "ledger_core.User"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# =============================================================================
# Ledger
# =============================================================================
# Max |debits - credits| accepted for a journal entry and for report checks
LEDGER_BALANCE_TOLERANCE = Decimal(os.getenv("LEDGER_BALANCE_TOLERANCE", "0.01"))

# Entry numbers look like JE-2026-001
LEDGER_ENTRY_NUMBER_PREFIX = os.getenv("LEDGER_ENTRY_NUMBER_PREFIX", "JE")
LEDGER_ENTRY_NUMBER_WIDTH = int(os.getenv("LEDGER_ENTRY_NUMBER_WIDTH", "3"))

# Cash on Hand, Cash in Bank, Petty Cash
LEDGER_CASH_ACCOUNT_CODES = os.getenv(
    "LEDGER_CASH_ACCOUNT_CODES", "1000,1010,1020").split(",")

# AR, Inventory, Prepaid, AP, Accrued liabilities
LEDGER_WORKING_CAPITAL_CODES = os.getenv(
    "LEDGER_WORKING_CAPITAL_CODES", "1100,1200,1300,2000,2100").split(",")

LEDGER_RETAINED_EARNINGS_CODE = os.getenv("LEDGER_RETAINED_EARNINGS_CODE", "3300")

# =============================================================================
# Celery
# =============================================================================
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")

CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TIME_LIMIT = 30 * 60
# run tasks inline during tests
CELERY_TASK_ALWAYS_EAGER = TESTING

# =============================================================================
# Logging
# =============================================================================
LOGGING = get_logging_config(DEBUG)
