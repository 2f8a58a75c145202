from django.contrib import admin
from django.db.models import Sum
from django.utils.html import format_html

from ledger_core.models import EntryStatus, JournalEntry
from ledger_core.services.sequences import next_entry_number

from .actions import post_journal_entries, void_journal_entries
from .inlines import JournalLineInline
from .mixins import TenantAdminMixin


# Register `JournalEntry` model
@admin.register(JournalEntry)
class JournalEntryAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "entry_number",
        "company",
        "date",
        "entry_type",
        "reference",
        "status",
        "posted_at",
        "balanced",
    )
    list_filter = ("company", "status", "entry_type", "date")
    search_fields = ("entry_number", "reference", "description")
    readonly_fields = (
        "entry_number", "status", "total_debit", "total_credit",
        "created_by", "posted_by", "posted_at", "voided_by", "voided_at",
        "source_type", "source_id",
    )
    inlines = [JournalLineInline]
    # posting/voiding only through the ledger services
    actions = [post_journal_entries, void_journal_entries]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("company", "created_by")

    @admin.display(description="Debits / Credits")
    def balanced(self, obj):
        return format_html("<b>{}</b> / <small>{}</small>", obj.total_debit, obj.total_credit)

    """ Make entries immutable once posted """
    def get_readonly_fields(self, request, obj=None):
        fields = list(self.readonly_fields)
        if obj and obj.status != EntryStatus.DRAFT:
            fields += ["company", "date", "reference", "description", "entry_type"]
        return fields

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status != EntryStatus.DRAFT:
            return False
        return super().has_delete_permission(request, obj)

    def save_model(self, request, obj, form, change):
        if not change:
            if not request.user.is_superuser:
                obj.company = self._get_request_company(request)
            obj.entry_number = next_entry_number(obj.company, obj.date)
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        # keep cached totals in step with the inline lines
        entry = form.instance
        if entry.status == EntryStatus.DRAFT:
            totals = entry.lines.aggregate(debit=Sum("debit"), credit=Sum("credit"))
            entry.total_debit = totals["debit"] or 0
            entry.total_credit = totals["credit"] or 0
            entry.save(update_fields=["total_debit", "total_credit"])
