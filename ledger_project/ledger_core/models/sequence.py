from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


class CompanySequence(models.Model):
    """
    Per-company counter row (e.g. name="journal_entry:2026").
    Allocated under select_for_update so concurrent callers never share a value.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="sequences")
    name = models.CharField(max_length=64)
    next_value = models.PositiveIntegerField(default=1)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_sequence_name"
            )
        ]

    def __str__(self):
        return f"{self.company.slug}:{self.name}={self.next_value}"
