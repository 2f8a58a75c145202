from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Customer ----------
# Client who receives invoices (AR side)
class Customer(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    contact_email = models.EmailField(null=True, blank=True)

    # Standard credit terms: invoice due N days after issue
    payment_terms_days = models.IntegerField(default=30)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="ix_customer_company_name"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_customer_name"
            ),
        ]

    def __str__(self):
        return self.name
