"""
Chama Ledger - Savings Group Contribution & Loan Ledger

A FastAPI-based service that tracks member contributions, arrears and
penalties, and the loan lifecycle of rotating savings groups.
"""

__version__ = "0.1.0"
