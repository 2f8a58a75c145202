from django.contrib import admin

from ledger_core.models import LedgerRecord

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Append-only rows: browse, never edit
@admin.register(LedgerRecord)
class LedgerRecordAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "company",
        "transaction_date",
        "entry_number",
        "account",
        "debit",
        "credit",
        "running_balance",
        "is_reversal",
    )
    list_filter = ("company", "is_reversal", "transaction_date")
    search_fields = ("entry_number", "account__code", "account__name", "description")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("company", "account")
