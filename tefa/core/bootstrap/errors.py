"""
TEFA Bootstrap — Errors
"""


class BootstrapError(Exception):
    """The store failed a startup integrity check."""

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"TEFA BOOTSTRAP FAILURE [{invariant}]: {detail}")
