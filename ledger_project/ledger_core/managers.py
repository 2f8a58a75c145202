from django.contrib.auth.base_user import BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        return self.filter(company=company)

    def active(self, company):
        return self.filter(company=company, is_active=True)
    # Account.objects.active(request.company)


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """Default manager for company-owned models: .for_company() / .active()"""
    pass


class LedgerRecordQuerySet(TenantQuerySet):
    """Ledger rows are append-only, bulk rewrites are refused."""

    def update(self, **kwargs):
        raise ValidationError("Ledger records are immutable and cannot be updated.")

    def delete(self):
        raise ValidationError("Ledger records are immutable and cannot be deleted.")

    def for_account(self, account):
        # insertion order is the running-balance order
        return self.filter(account=account).order_by("id")


class LedgerRecordManager(models.Manager.from_queryset(LedgerRecordQuerySet)):
    pass


class TenantUserManager(BaseUserManager):
    """ Enforce rules around how users are created """

    use_in_migrations = True

    def get_queryset(self):
        return models.QuerySet(self.model, using=self._db)

    def for_company(self, company):
        return self.get_queryset().filter(default_company=company)

    # Shared logic for both create_user() & create_superuser()
    def _create_user(self, username, email, password, **extra_fields):
        if not username:
            raise ValueError("The given username must be set")
        email = self.normalize_email(email)
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)  # hashed
        user.save(using=self._db)
        return user

    def create_user(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(username, email, password, **extra_fields)

    # Used by Django when running `createsuperuser`
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields.get("is_staff") is not True or extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_staff=True and is_superuser=True")
        return self._create_user(username, email, password, **extra_fields)
