"""
Expense Tracker - Source Package

A personal finance tracker: income/expense transactions, hierarchical
categories, contacts, savings goals, vouchers and reports.

DESIGN PRINCIPLES:
1. Identity is passed explicitly into every store operation
2. Fail early, fail visibly
3. Every write is auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
