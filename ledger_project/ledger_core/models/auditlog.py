from django.conf import settings
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Audit / Event log ----------
class AuditLog(models.Model):
    # Nullable: some events are system-wide
    company = models.ForeignKey(
        Company,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Nullable for automated actions (celery task, management command)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    action = models.CharField(max_length=50)  # create, update, post, void, delete, close_period ...
    object_type = models.CharField(max_length=100)  # "JournalEntry", "Period"
    object_id = models.CharField(max_length=100)
    # before/after details, JSON
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "user"], name="ix_audit_company_user"),
            models.Index(fields=["company", "created_at"], name="ix_audit_company_created"),
        ]

    def __str__(self):
        return f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.object_type}({self.object_id})"
