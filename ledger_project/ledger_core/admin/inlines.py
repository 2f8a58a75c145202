from django.contrib import admin

from ledger_core.models import JournalLine


class JournalLineInline(admin.TabularInline):
    """JournalLine rows on the JournalEntry page (read-only once posted)."""

    model = JournalLine
    extra = 0
    fields = ("line_no", "account", "account_code", "account_name", "description", "debit", "credit")
    readonly_fields = ("account_code", "account_name")
    ordering = ("line_no", "id")

    def formfield_for_foreignkey(self, db_field, request=None, **kwargs):
        if db_field.name == "account":
            company = getattr(request, "company", None) or getattr(request.user, "default_company", None)
            qs = db_field.related_model.objects.filter(is_active=True)
            if company is not None and not request.user.is_superuser:
                qs = qs.filter(company=company)
            kwargs["queryset"] = qs
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def _is_locked(self, obj):
        return obj is not None and obj.status != "draft"

    def has_add_permission(self, request, obj=None):
        return not self._is_locked(obj) and super().has_add_permission(request, obj)

    def has_change_permission(self, request, obj=None):
        return not self._is_locked(obj) and super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return not self._is_locked(obj) and super().has_delete_permission(request, obj)
