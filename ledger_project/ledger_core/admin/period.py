from django.contrib import admin

from ledger_core.models import Period

from .actions import close_periods, lock_periods
from .mixins import TenantAdminMixin


# Register `Period` model
@admin.register(Period)
class PeriodAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "company", "name", "start_date", "end_date", "status", "closed_at")
    list_filter = ("company", "status")
    search_fields = ("name",)
    readonly_fields = ("status", "closed_by", "closed_at", "closing_entry")
    actions = [close_periods, lock_periods]
