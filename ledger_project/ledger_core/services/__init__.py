from .accounts import (deactivate_account, find_account_by_role, get_account,
                       seed_chart_of_accounts)
from .balances import (get_account_balance, get_account_ledger,
                       get_entry_ledger_rows, get_general_ledger,
                       get_trial_balance)
from .documents import (approve_bill, post_invoice, record_bill_payment,
                        record_invoice_payment)
from .integrity import check_ledger_integrity
from .journal import (create_journal_entry, delete_journal_entry,
                      entries_by_date_range, entries_by_status,
                      entries_by_type, get_journal_entry,
                      list_journal_entries, post_journal_entry,
                      update_journal_entry, void_journal_entry)
from .periods import close_period, create_period, lock_period, reopen_period
from .reports import (generate_ap_aging_report, generate_ar_aging_report,
                      generate_balance_sheet, generate_cash_flow_statement,
                      generate_income_statement, generate_trial_balance)
