"""
TEFA Ledger Engine
==================
Append-only record of completed service and retail payments.
"""
