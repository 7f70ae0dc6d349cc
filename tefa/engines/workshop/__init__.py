"""
TEFA Workshop Engine
====================
Service-job lifecycle: intake, mechanic assignment, status
progression, parts consumption and billing.
"""
