"""
TEFA Staff Engine
=================
Users, mechanic availability and the front-end session.
"""

from tefa.engines.staff.availability import MechanicAvailability
from tefa.engines.staff.session import GUEST_USER_ID, Session

__all__ = ["GUEST_USER_ID", "MechanicAvailability", "Session"]
