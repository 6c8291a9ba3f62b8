"""
Billing cost aggregation engine.

Turns per-account usage, fee and credit figures into net, discounted and
converted cost reports.
"""

__version__ = "0.1.0"
