from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.text import slugify

from ..managers import TenantManager, TenantUserManager


# ---------- Tenant / Company ----------
class Company(models.Model):
    """Tenant / Organization. Every ledger object is scoped to one company."""

    name = models.CharField(max_length=200)

    slug = models.SlugField(  # URL-friendly identifier
        max_length=80, unique=True
    )

    # Single base currency, reports never convert
    currency_code = models.CharField(max_length=10, default="USD")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Companies created in code often skip the slug
        if not self.slug:
            self.slug = slugify(self.name) or "company"
        return super().save(*args, **kwargs)


# ---------- Custom User ----------
class User(AbstractUser):
    """
    Before you run your very first migrate,
    'AUTH_USER_MODEL = "ledger_core.User"' must be in settings.py
    """
    # Company used when the session has not picked one
    default_company = models.ForeignKey(
        "Company",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,  # keep the user, clear the default
        related_name="default_users",
    )

    objects = TenantUserManager()

    class Meta:
        indexes = [models.Index(fields=["default_company"], name="ix_user_default_company")]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- EntityMembership ----------
class EntityMembership(models.Model):
    """Which companies a user may switch into."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    company = models.ForeignKey(
        "Company", on_delete=models.CASCADE, related_name="memberships"
    )
    # suspend access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["company", "user"], name="ix_membership_company_user"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company}"

    def clean(self):
        if self.user_id and self.company_id is None:
            raise ValidationError("Membership requires a company.")
