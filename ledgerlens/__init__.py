"""
LedgerLens
Financial report normalization, analytics, forecasting and ledger validation.
"""

__version__ = "1.0.0"
