from django.contrib import admin

from ledger_core.models import Bill, Customer, Invoice, Vendor

from .mixins import TenantAdminMixin


@admin.register(Customer)
class CustomerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "company", "name", "contact_email", "payment_terms_days")
    list_filter = ("company",)
    search_fields = ("name", "contact_email")


@admin.register(Vendor)
class VendorAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "company", "name", "contact_email", "payment_terms_days")
    list_filter = ("company",)
    search_fields = ("name", "contact_email")


@admin.register(Invoice)
class InvoiceAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("invoice_number", "company", "customer", "issue_date", "due_date",
                    "status", "total_amount", "balance_due")
    list_filter = ("company", "status")
    search_fields = ("invoice_number", "customer__name")
    # status and payments move only through the document services
    readonly_fields = ("status", "amount_paid", "balance_due", "journal_entry")


@admin.register(Bill)
class BillAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("bill_number", "company", "vendor", "bill_date", "due_date",
                    "status", "total_amount", "balance_due")
    list_filter = ("company", "status")
    search_fields = ("bill_number", "vendor__name")
    readonly_fields = ("status", "amount_paid", "balance_due", "journal_entry")
