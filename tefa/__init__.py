"""
TEFA Workshop Core
==================
In-memory domain layer for a vehicle-repair teaching workshop:
job intake, mechanic assignment, parts consumption, retail checkout,
notifications and the transaction ledger.
"""

__version__ = "0.3.0"
