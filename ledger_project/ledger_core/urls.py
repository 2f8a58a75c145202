from django.urls import path

from . import views

urlpatterns = [
    # journal entries
    path("journal-entries/", views.journal_entries, name="journal-entries"),
    path("journal-entries/date-range/", views.journal_entries_by_date_range, name="journal-entries-date-range"),
    path("journal-entries/type/<str:entry_type>/", views.journal_entries_by_type, name="journal-entries-type"),
    path("journal-entries/status/<str:status>/", views.journal_entries_by_status, name="journal-entries-status"),
    path("journal-entries/<int:entry_id>/", views.journal_entry_detail, name="journal-entry-detail"),
    path("journal-entries/<int:entry_id>/post/", views.journal_entry_post, name="journal-entry-post"),
    path("journal-entries/<int:entry_id>/void/", views.journal_entry_void, name="journal-entry-void"),
    path("journal-entries/<int:entry_id>/ledger/", views.journal_entry_ledger, name="journal-entry-ledger"),
    # ledger
    path("ledger/", views.general_ledger, name="general-ledger"),
    path("ledger/accounts/<int:account_id>/", views.account_ledger, name="account-ledger"),
    # reports
    path("reports/balance-sheet/", views.balance_sheet, name="report-balance-sheet"),
    path("reports/income-statement/", views.income_statement, name="report-income-statement"),
    path("reports/cash-flow/", views.cash_flow_statement, name="report-cash-flow"),
    path("reports/trial-balance/", views.trial_balance, name="report-trial-balance"),
    path("reports/ar-aging/", views.ar_aging, name="report-ar-aging"),
    path("reports/ap-aging/", views.ap_aging, name="report-ap-aging"),
]
