"""
Finance Tracker - Source Package

A personal finance tracker: accounts, income/expense transactions,
AI-assisted receipt entry, reports and an investment portfolio.

DESIGN PRINCIPLES:
1. Hosted services own persistence and identity
2. AI fills forms, the user saves them
3. AI failures fall back, they never block the user
4. Aggregations are pure functions over loaded data
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
