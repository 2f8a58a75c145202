from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


class PeriodStatus(models.TextChoices):
    OPEN = "open", "Open"
    CLOSED = "closed", "Closed"  # closing entry posted, can be reopened
    LOCKED = "locked", "Locked"  # final


# ---------- Period (accounting period) ----------
class Period(models.Model):
    """
    A time bucket of one company's books.
    Nothing can be posted or voided on a date covered by a closed or locked period.
    """

    # Every company has its own independent calendar of periods
    company = models.ForeignKey(Company, on_delete=models.PROTECT)

    name = models.CharField(max_length=50)  # "2026-Q3", "FY2026"
    start_date = models.DateField()
    end_date = models.DateField()

    status = models.CharField(
        max_length=10, choices=PeriodStatus.choices, default=PeriodStatus.OPEN
    )
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="closed_periods",
    )
    closed_at = models.DateTimeField(null=True, blank=True)

    # Entry that moved the period's revenue/expense into retained earnings
    closing_entry = models.ForeignKey(
        "JournalEntry",
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="closed_periods",
    )

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "start_date"], name="ix_period_company_start"),
            models.Index(fields=["company", "status"], name="ix_period_company_status"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["company", "name"],
                                    name="uq_company_period_name"),
        ]
        ordering = ("company", "start_date")

    def __str__(self):
        return f"{self.company.slug} {self.name}"

    @property
    def is_open(self):
        return self.status == PeriodStatus.OPEN

    def covers(self, on_date):
        return self.start_date <= on_date <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError("start_date must be before end_date")

        # periods of one company never overlap
        if self.company_id and self.start_date and self.end_date:
            overlapping = Period.objects.filter(
                company_id=self.company_id,
                start_date__lte=self.end_date,
                end_date__gte=self.start_date,
            ).exclude(pk=self.pk)
            if overlapping.exists():
                raise ValidationError("Accounting periods cannot overlap")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
