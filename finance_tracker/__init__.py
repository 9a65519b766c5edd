"""
Finance Tracker - Source Package

A multi-user personal finance service: a transaction ledger, monthly
category budgets with spend evaluation, and monthly income/expense reports.

DESIGN PRINCIPLES:
1. Every record belongs to exactly one user; every path is owner-scoped
2. Derived figures (spend, savings) are computed at read time, never stored
3. Money is Decimal end to end
4. Every significant action is audited
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
