from django.contrib import admin

from ledger_core.models import Account

from .mixins import TenantAdminMixin


# Register `Account` model
@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "code",
        "name",
        "ac_type",
        "sub_type",
        "normal_balance",
        "is_contra",
        "is_active",
    )
    list_filter = ("company", "ac_type", "is_active")
    search_fields = ("code", "name", "sub_type")
    # accounts grouped by company, then sorted by code
    ordering = ("company", "code")
    fields = ("company", "code", "name", "ac_type", "sub_type", "normal_balance", "description", "is_active")

    @admin.display(boolean=True, description="Contra")
    def is_contra(self, obj):
        return obj.is_contra

    # history lives in the ledger: deactivate instead
    def has_delete_permission(self, request, obj=None):
        if obj is not None and (obj.journal_lines.exists() or obj.ledger_records.exists()):
            return False
        return super().has_delete_permission(request, obj)
