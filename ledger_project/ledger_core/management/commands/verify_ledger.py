from django.core.management.base import BaseCommand, CommandError

from ledger_core.models import Company
from ledger_core.services import check_ledger_integrity
from ledger_core.services.journal import to_date


class Command(BaseCommand):
    help = (
        "Check trial balance, accounting equation, running balances and per-entry "
        "balance for one company (or all). Exits non-zero on any fault."
    )

    def add_arguments(self, parser):
        parser.add_argument("--company", help="Company slug (default: every company)")
        parser.add_argument("--as-of", dest="as_of", help="As-of date, YYYY-MM-DD (default: today)")

    def handle(self, *args, **options):
        companies = Company.objects.order_by("slug")
        if options["company"]:
            companies = companies.filter(slug=options["company"])
            if not companies.exists():
                raise CommandError(f"Company not found: {options['company']}")
        as_of = to_date(options["as_of"], "as-of date")

        failed = []
        for company in companies:
            result = check_ledger_integrity(company, as_of)
            if result["ok"]:
                self.stdout.write(self.style.SUCCESS(f"{company.slug}: ok"))
                continue
            failed.append(company.slug)
            self.stdout.write(self.style.ERROR(f"{company.slug}: {'; '.join(result['faults'])}"))
            for row in result["running_balance_breaks"]:
                self.stdout.write(
                    f"  {row['code']} {row['entry_number']}: stored {row['stored']} expected {row['expected']}"
                )
            for row in result["unbalanced_entries"]:
                self.stdout.write(f"  {row['entry_number']}: D {row['debit']} C {row['credit']}")

        if failed:
            raise CommandError(f"Ledger integrity faults in: {', '.join(failed)}")
