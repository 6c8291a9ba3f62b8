"""
Core modules for the billing cost engine.

This package contains the pure computations: per-account cost, report
aggregation, currency conversion and fund balances.
"""
