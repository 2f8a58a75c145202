import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils.text import slugify

from ledger_core.models import (Account, Bill, Company, Customer,
                                EntityMembership, Invoice, Vendor)
from ledger_core.services import (approve_bill, create_journal_entry,
                                  post_invoice, post_journal_entry,
                                  record_invoice_payment,
                                  seed_chart_of_accounts)

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo tenant (company), user, chart of accounts and a few "
        "posted transactions."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",  # Define flag
            default="Demo Company",
            help="Name of the demo company to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        company_name = options["company_name"]
        username = options["username"]
        password = options["password"]

        # "Test Ltd" → "test-ltd" → "test-ltd-1" ...
        def unique_slug_for_company(name, max_tries=100):
            base = slugify(name) or "company"
            slug = base
            i = 1
            while Company.objects.filter(slug=slug).exists():
                slug = f"{base}-{i}"
                i += 1
                if i > max_tries:
                    raise CommandError("Couldn't generate unique slug")
            return slug

        # 1. Company + chart of accounts
        company = Company.objects.create(
            name=company_name, slug=unique_slug_for_company(company_name)
        )
        created = seed_chart_of_accounts(company)
        self.stdout.write(f"Company '{company.name}' ({company.slug}): {created} accounts")

        # 2. User + membership
        user, user_created = User.objects.get_or_create(
            username=username, defaults={"email": f"{username}@example.com"}
        )
        if user_created:
            user.set_password(password)
        user.default_company = company
        user.save()
        EntityMembership.objects.get_or_create(user=user, company=company)

        # 3. Owner investment and rent
        accounts = {a.code: a for a in Account.objects.for_company(company)}
        today = datetime.date.today()
        start = today.replace(day=1)

        def journal(day, description, lines):
            entry = create_journal_entry(
                company,
                entry_date=day,
                lines=[
                    {"account_id": accounts[code].pk, "debit": debit, "credit": credit}
                    for code, debit, credit in lines
                ],
                user=user,
                description=description,
            )
            return post_journal_entry(entry, user=user)

        journal(start, "Owner investment", [
            ("1010", Decimal("50000.00"), 0),
            ("3000", 0, Decimal("50000.00")),
        ])
        journal(start, "Monthly rent", [
            ("6100", Decimal("2000.00"), 0),
            ("1010", 0, Decimal("2000.00")),
        ])

        # 4. Customer invoice, partly paid
        customer = Customer.objects.create(company=company, name="Acme Corp")
        invoice = Invoice.objects.create(
            company=company,
            customer=customer,
            invoice_number="INV-0001",
            issue_date=start,
            due_date=start + datetime.timedelta(days=customer.payment_terms_days),
            subtotal=Decimal("5000.00"),
            tax_amount=Decimal("500.00"),
        )
        post_invoice(invoice, user=user)
        record_invoice_payment(invoice, Decimal("2500.00"), user=user, payment_date=today)

        # 5. Supplier bill
        vendor = Vendor.objects.create(company=company, name="Office Supplies Inc")
        bill = Bill.objects.create(
            company=company,
            vendor=vendor,
            bill_number="BILL-0001",
            bill_date=start,
            due_date=start + datetime.timedelta(days=vendor.payment_terms_days),
            total_amount=Decimal("750.00"),
        )
        approve_bill(bill, user=user)

        self.stdout.write(self.style.SUCCESS(
            f"Demo tenant ready: company={company.slug} user={user.username}"
        ))
