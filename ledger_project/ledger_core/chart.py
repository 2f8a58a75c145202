"""
Standard chart of accounts installed for new companies.

(code, name, ac_type, sub_type, normal_balance)
sub_type values are what the report engine groups on.
"""

STANDARD_CHART = [
    # Assets
    ("1000", "Cash on Hand", "asset", "Current Asset", "debit"),
    ("1010", "Cash in Bank", "asset", "Current Asset", "debit"),
    ("1020", "Petty Cash", "asset", "Current Asset", "debit"),
    ("1100", "Accounts Receivable", "asset", "Current Asset", "debit"),
    ("1110", "Allowance for Doubtful Accounts", "asset", "Current Asset", "credit"),
    ("1200", "Inventory", "asset", "Current Asset", "debit"),
    ("1300", "Prepaid Expenses", "asset", "Current Asset", "debit"),
    ("1500", "Land", "asset", "Fixed Asset", "debit"),
    ("1510", "Buildings", "asset", "Fixed Asset", "debit"),
    ("1520", "Equipment", "asset", "Fixed Asset", "debit"),
    ("1530", "Vehicles", "asset", "Fixed Asset", "debit"),
    ("1560", "Accumulated Depreciation - Buildings", "asset", "Fixed Asset", "credit"),
    ("1570", "Accumulated Depreciation - Equipment", "asset", "Fixed Asset", "credit"),
    ("1580", "Accumulated Depreciation - Vehicles", "asset", "Fixed Asset", "credit"),
    ("1800", "Security Deposits", "asset", "Other Asset", "debit"),
    # Liabilities
    ("2000", "Accounts Payable", "liability", "Current Liability", "credit"),
    ("2100", "Accrued Liabilities", "liability", "Current Liability", "credit"),
    ("2200", "Sales Tax Payable", "liability", "Current Liability", "credit"),
    ("2300", "Unearned Revenue", "liability", "Current Liability", "credit"),
    ("2600", "Long-term Loans", "liability", "Long-term Liability", "credit"),
    ("2610", "Mortgage Payable", "liability", "Long-term Liability", "credit"),
    # Equity
    ("3000", "Owner's Capital", "equity", "Owner's Equity", "credit"),
    ("3100", "Owner's Drawings", "equity", "Owner's Equity", "debit"),
    ("3300", "Retained Earnings", "equity", "Retained Earnings", "credit"),
    # Revenue
    ("4000", "Sales Revenue", "revenue", "Operating Revenue", "credit"),
    ("4010", "Service Revenue", "revenue", "Operating Revenue", "credit"),
    ("4100", "Sales Returns and Allowances", "revenue", "Contra Revenue", "debit"),
    ("4110", "Sales Discounts", "revenue", "Contra Revenue", "debit"),
    ("4500", "Interest Income", "revenue", "Other Income", "credit"),
    ("4510", "Gain on Sale of Assets", "revenue", "Other Income", "credit"),
    # Expenses
    ("5000", "Cost of Goods Sold", "expense", "Cost of Sales", "debit"),
    ("6000", "Salaries and Wages", "expense", "Operating Expense", "debit"),
    ("6100", "Rent Expense", "expense", "Operating Expense", "debit"),
    ("6200", "Utilities Expense", "expense", "Operating Expense", "debit"),
    ("6300", "Office Supplies", "expense", "Operating Expense", "debit"),
    ("6400", "Depreciation Expense", "expense", "Operating Expense", "debit"),
    ("6500", "General Expenses", "expense", "Operating Expense", "debit"),
    ("7000", "Interest Expense", "expense", "Non-Operating Expense", "debit"),
    ("7100", "Income Tax Expense", "expense", "Tax Expense", "debit"),
]
