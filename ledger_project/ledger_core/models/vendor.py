from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Vendor ----------
# Supplier who sends bills (AP side)
class Vendor(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    contact_email = models.EmailField(null=True, blank=True)
    payment_terms_days = models.IntegerField(default=30)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="ix_vendor_company_name"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_vendor_name"
            ),
        ]

    def __str__(self):
        return self.name
