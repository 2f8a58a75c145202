import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from ..exceptions import FailedPreconditionError, JournalValidationError
from ..models import Bill, BillStatus, EntryType, Invoice, InvoiceStatus
from .accounts import find_account_by_role
from .journal import create_journal_entry, post_journal_entry, to_date, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# ------------------------------------
# Automatic postings for business documents.
# Each builds a draft entry, posts it through the journal manager and
# returns it so the caller keeps the cross-reference.
# ------------------------------------
def _post_document_entry(company, *, entry_date, lines, user, reference, description, entry_type, source_type, source_id):
    entry = create_journal_entry(
        company,
        entry_date=entry_date,
        lines=lines,
        user=user,
        reference=reference,
        description=description,
        entry_type=entry_type,
        source_type=source_type,
        source_id=source_id,
    )
    entry = post_journal_entry(entry, user=user)
    logger.info(
        "Document journal entry posted",
        extra={"company": company.pk, "source_type": source_type, "source_id": source_id,
               "entry_number": entry.entry_number},
    )
    return entry


def post_invoice(invoice: Invoice, user=None):
    """
    Issue an invoice (draft → sent) and book revenue:
      Debit: Accounts Receivable = total
      Credit: Revenue = subtotal
      Credit: Sales tax payable = tax (to revenue when no tax account exists)
    """
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.status != InvoiceStatus.DRAFT:
            raise FailedPreconditionError("Only draft invoices can be sent")
        if invoice.total_amount <= 0:
            raise JournalValidationError("Invoice total must be > 0 to post revenue")

        company = invoice.company
        receivable = find_account_by_role(company, "receivable")
        revenue = find_account_by_role(company, "revenue")
        tax_account = find_account_by_role(company, "sales_tax", required=False) if invoice.tax_amount else None

        subtotal = invoice.total_amount - invoice.tax_amount
        lines = [
            {"account_id": receivable.pk, "debit": invoice.total_amount, "credit": ZERO,
             "description": f"AR for invoice {invoice.invoice_number}"},
        ]
        if tax_account is None:
            lines.append({"account_id": revenue.pk, "debit": ZERO, "credit": invoice.total_amount,
                          "description": f"Revenue: invoice {invoice.invoice_number}"})
        else:
            if subtotal > 0:
                lines.append({"account_id": revenue.pk, "debit": ZERO, "credit": subtotal,
                              "description": f"Revenue: invoice {invoice.invoice_number}"})
            lines.append({"account_id": tax_account.pk, "debit": ZERO, "credit": invoice.tax_amount,
                          "description": f"Sales tax: invoice {invoice.invoice_number}"})

        entry = _post_document_entry(
            company,
            entry_date=invoice.issue_date,
            lines=lines,
            user=user,
            reference=invoice.invoice_number,
            description=f"Invoice {invoice.invoice_number} - {invoice.customer.name}",
            entry_type=EntryType.INVOICE,
            source_type="invoice",
            source_id=invoice.pk,
        )
        invoice.status = InvoiceStatus.SENT
        invoice.journal_entry = entry
        invoice.save()
    return entry


def approve_bill(bill: Bill, user=None):
    """
    Approve a bill (draft → open) and book the payable:
      Debit: bill.expense_account (default operating expense) = total
      Credit: Accounts Payable = total
    """
    with transaction.atomic():
        bill = Bill.objects.select_for_update().get(pk=bill.pk)
        if bill.status != BillStatus.DRAFT:
            raise FailedPreconditionError("Only draft bills can be approved")
        if bill.total_amount <= 0:
            raise JournalValidationError("Bill total must be > 0 to post an expense")

        company = bill.company
        expense = bill.expense_account or find_account_by_role(company, "expense")
        payable = find_account_by_role(company, "payable")

        entry = _post_document_entry(
            company,
            entry_date=bill.bill_date,
            lines=[
                {"account_id": expense.pk, "debit": bill.total_amount, "credit": ZERO,
                 "description": f"Bill {bill.bill_number}"},
                {"account_id": payable.pk, "debit": ZERO, "credit": bill.total_amount,
                 "description": f"AP for bill {bill.bill_number}"},
            ],
            user=user,
            reference=bill.bill_number,
            description=f"Bill {bill.bill_number} - {bill.vendor.name}",
            entry_type=EntryType.BILL,
            source_type="bill",
            source_id=bill.pk,
        )
        bill.status = BillStatus.OPEN
        bill.journal_entry = entry
        bill.save()
    return entry


def _payment_amount(document, amount):
    amount = to_money(amount, "payment amount")
    if amount <= 0:
        raise JournalValidationError("Payment amount must be positive")
    if amount > document.balance_due:
        raise JournalValidationError(f"Payment {amount} exceeds balance due {document.balance_due}")
    return amount


def record_invoice_payment(invoice: Invoice, amount, user=None, *, payment_date=None, cash_account=None):
    """Customer payment: Debit cash, Credit Accounts Receivable."""
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.status not in (InvoiceStatus.SENT, InvoiceStatus.PARTIAL):
            raise FailedPreconditionError("Payments can only be applied to sent or partially paid invoices")
        amount = _payment_amount(invoice, amount)
        payment_date = to_date(payment_date, "payment date") or timezone.localdate()

        company = invoice.company
        cash = cash_account or find_account_by_role(company, "cash")
        receivable = find_account_by_role(company, "receivable")

        entry = _post_document_entry(
            company,
            entry_date=payment_date,
            lines=[
                {"account_id": cash.pk, "debit": amount, "credit": ZERO,
                 "description": f"Receipt for invoice {invoice.invoice_number}"},
                {"account_id": receivable.pk, "debit": ZERO, "credit": amount,
                 "description": f"Clear AR for invoice {invoice.invoice_number}"},
            ],
            user=user,
            reference=f"PMT-{invoice.invoice_number}",
            description=f"Payment for invoice {invoice.invoice_number}",
            entry_type=EntryType.PAYMENT,
            source_type="invoice_payment",
            source_id=invoice.pk,
        )
        invoice.amount_paid += amount
        invoice.status = (
            InvoiceStatus.PAID if invoice.amount_paid >= invoice.total_amount else InvoiceStatus.PARTIAL
        )
        invoice.save()
    return entry


def record_bill_payment(bill: Bill, amount, user=None, *, payment_date=None, cash_account=None):
    """Supplier payment: Debit Accounts Payable, Credit cash."""
    with transaction.atomic():
        bill = Bill.objects.select_for_update().get(pk=bill.pk)
        if bill.status not in (BillStatus.OPEN, BillStatus.PARTIAL):
            raise FailedPreconditionError("Payments can only be applied to open or partially paid bills")
        amount = _payment_amount(bill, amount)
        payment_date = to_date(payment_date, "payment date") or timezone.localdate()

        company = bill.company
        cash = cash_account or find_account_by_role(company, "cash")
        payable = find_account_by_role(company, "payable")

        entry = _post_document_entry(
            company,
            entry_date=payment_date,
            lines=[
                {"account_id": payable.pk, "debit": amount, "credit": ZERO,
                 "description": f"Clear AP for bill {bill.bill_number}"},
                {"account_id": cash.pk, "debit": ZERO, "credit": amount,
                 "description": f"Payment for bill {bill.bill_number}"},
            ],
            user=user,
            reference=f"PMT-{bill.bill_number}",
            description=f"Payment for bill {bill.bill_number}",
            entry_type=EntryType.PAYMENT,
            source_type="bill_payment",
            source_id=bill.pk,
        )
        bill.amount_paid += amount
        bill.status = BillStatus.PAID if bill.amount_paid >= bill.total_amount else BillStatus.PARTIAL
        bill.save()
    return entry
