from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _

from ledger_core.models import Company, EntityMembership, User


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "currency_code", "created_at")
    search_fields = ("name", "slug")
    ordering = ("name",)


# Extend stock `DjangoUserAdmin` with the default company
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("username", "email", "get_full_name", "is_staff", "default_company")
    fieldsets = DjangoUserAdmin.fieldsets + (
        (_("Company / Defaults"), {"fields": ("default_company",)}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        (_("Company / Defaults"), {"fields": ("default_company",)}),
    )


@admin.register(EntityMembership)
class EntityMembershipAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "company", "is_active", "created_at")
    list_filter = ("company", "is_active")
    search_fields = ("user__username", "company__name")
