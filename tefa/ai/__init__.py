"""
TEFA AI — Diagnostic Assistant
==============================
Read-only helper for the front desk: turns a customer complaint
into a short diagnosis suggestion. Never touches workshop state.
"""

from tefa.ai.assistant import FALLBACK_MESSAGE, SYSTEM_PROMPT, DiagnosticAssistant
from tefa.ai.transport import AssistantTransport, GeminiTransport, TransportError

__all__ = [
    "AssistantTransport",
    "DiagnosticAssistant",
    "FALLBACK_MESSAGE",
    "GeminiTransport",
    "SYSTEM_PROMPT",
    "TransportError",
]
