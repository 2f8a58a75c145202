from .account import Account, AccountType, NormalBalance
from .auditlog import AuditLog
from .bill import OPEN_BILL_STATUSES, Bill, BillStatus
from .customer import Customer
from .entitymembership import Company, EntityMembership, User
from .invoice import OPEN_INVOICE_STATUSES, Invoice, InvoiceStatus
from .journal import EntryStatus, EntryType, JournalEntry, JournalLine
from .ledger import LedgerRecord
from .period import Period, PeriodStatus
from .sequence import CompanySequence
from .vendor import Vendor
