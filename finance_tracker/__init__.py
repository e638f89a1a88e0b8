"""
Finance Tracker - Source Package

A personal finance tracker: income and expense records, a monthly
budget, a savings goal and the statistics derived from them.
Everything is stored locally, scoped to the signed-in user.

DESIGN PRINCIPLES:
1. Validate before touching storage
2. Fail early on writes, fail safe on load
3. Every record belongs to exactly one user
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
