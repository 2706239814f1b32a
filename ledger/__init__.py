"""
Weekly Ledger - Source Package

A personal finance ledger and period-aggregation engine. Money movements
(income, expense, investment) are recorded, partitioned into weeks, closed
into two running wallets and summarised over time for display.

DESIGN PRINCIPLES:
1. The ledger write happens first, the wallet follows
2. Fail early, fail visibly
3. No silent corrections
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Weekly Ledger Team"
