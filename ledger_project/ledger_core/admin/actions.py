from django.contrib import admin, messages
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.utils.translation import gettext_lazy as _

from ledger_core.exceptions import FailedPreconditionError
from ledger_core.models import EntryStatus, PeriodStatus
from ledger_core.services import journal, periods

# ---------- Admin actions ----------
# Each object goes through the service layer in its own transaction,
# so one failure doesn't roll back the rest of the batch.

EXPECTED_ERRORS = (ValidationError, ObjectDoesNotExist, FailedPreconditionError)


def _run_batch(modeladmin, request, objects, operation, verb):
    success = 0
    failures = 0
    for obj in objects:
        try:
            operation(obj, user=request.user)
            success += 1
        except EXPECTED_ERRORS as exc:
            failures += 1
            modeladmin.message_user(
                request,
                _("Could not %(verb)s %(obj)s: %(err)s") % {"verb": verb, "obj": obj, "err": exc},
                level=messages.ERROR,
            )
    modeladmin.message_user(
        request,
        _("%(verb)s %(success)d of %(total)d. %(failures)d failed.") % {
            "verb": verb.capitalize(),
            "success": success,
            "total": success + failures,
            "failures": failures,
        },
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


@admin.action(description=_("Post selected journal entries to the ledger"))
def post_journal_entries(modeladmin, request, queryset):
    _run_batch(modeladmin, request, queryset.filter(status=EntryStatus.DRAFT),
               journal.post_journal_entry, "post")


@admin.action(description=_("Void selected journal entries"))
def void_journal_entries(modeladmin, request, queryset):
    _run_batch(modeladmin, request, queryset.filter(status=EntryStatus.POSTED),
               journal.void_journal_entry, "void")


@admin.action(description=_("Close selected periods"))
def close_periods(modeladmin, request, queryset):
    _run_batch(modeladmin, request, queryset.filter(status=PeriodStatus.OPEN).order_by("start_date"),
               periods.close_period, "close")


@admin.action(description=_("Lock selected periods"))
def lock_periods(modeladmin, request, queryset):
    _run_batch(modeladmin, request, queryset.filter(status=PeriodStatus.CLOSED),
               periods.lock_period, "lock")
