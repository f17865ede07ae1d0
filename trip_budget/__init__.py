"""
Trip Budget - Source Package

A personal budget tracker for a single trip: one budget in the home
currency, a ledger of transactions, and running totals converted to the
display currency through an exchange rate.

DESIGN PRINCIPLES:
1. One state owner, passed explicitly to every component
2. Rejected operations never change state
3. Sums happen in integer home-currency units
4. Bad stored data degrades, it never crashes startup
5. Storage and rate source are swappable
"""

__version__ = "1.0.0"
__author__ = "Trip Budget Team"
