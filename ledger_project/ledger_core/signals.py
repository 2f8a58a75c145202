from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Account, JournalEntry, JournalLine, LedgerRecord, Period

""" Block deletion if the account has ever been posted to or used in a line. """


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_history(sender, instance, **kwargs):
    if (
        JournalLine.objects.filter(account=instance).exists()
        or LedgerRecord.objects.filter(account=instance).exists()
    ):
        raise ValidationError("Cannot delete an account with ledger history; deactivate it instead.")


""" Posted and void entries are permanent, even through cascades. """


@receiver(pre_delete, sender=JournalEntry)
def prevent_delete_non_draft_entry(sender, instance, **kwargs):
    if instance.status != "draft":
        raise ValidationError("Only draft entries can be deleted")


"""Block deletion if period is closed or locked."""


@receiver(pre_delete, sender=Period)
def prevent_delete_closed_period(sender, instance, **kwargs):
    if instance.status != "open":
        raise ValidationError("Cannot delete a closed or locked period.")
