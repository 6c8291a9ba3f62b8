"""
Input records and data-source providers.
"""
