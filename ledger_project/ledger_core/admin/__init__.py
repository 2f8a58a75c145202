from .account import AccountAdmin
from .actions import (close_periods, lock_periods, post_journal_entries,
                      void_journal_entries)
from .auditlog import AuditLogAdmin
from .documents import BillAdmin, CustomerAdmin, InvoiceAdmin, VendorAdmin
from .inlines import JournalLineInline
from .journal import JournalEntryAdmin
from .ledger import LedgerRecordAdmin
from .membership import CompanyAdmin, EntityMembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .period import PeriodAdmin
