"""
TEFA AI — Diagnostic Assistant
==============================
Wraps one model call with a hard time limit and a fixed fallback
answer. ask() never raises: a missing key, a transport failure or
a timeout all produce FALLBACK_MESSAGE.

The call runs in a worker thread outside the store lock.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional

from tefa.ai.transport import AssistantTransport, GeminiTransport, TransportError
from tefa.config.settings import WorkshopSettings

logger = logging.getLogger("tefa.ai")

SYSTEM_PROMPT = (
    "Anda adalah kepala mekanik ahli di SMK Muhammadiyah Cangkringan (TEFA).\n"
    "Jawablah dengan bahasa Indonesia yang sopan, teknis namun mudah dimengerti, "
    "dan singkat.\n"
    "Berikan diagnosa kemungkinan kerusakan dan solusi berdasarkan keluhan kendaraan.\n"
    "Motto: Religius, Unggul, Kompeten."
)

FALLBACK_MESSAGE = "Maaf, sistem AI sedang tidak dapat diakses saat ini."


class DiagnosticAssistant:

    def __init__(
        self,
        transport: Optional[AssistantTransport] = None,
        *,
        timeout_seconds: float = 15.0,
        system_prompt: str = SYSTEM_PROMPT,
        fallback: str = FALLBACK_MESSAGE,
    ):
        self._transport = transport
        self.timeout_seconds = timeout_seconds
        self.system_prompt = system_prompt
        self.fallback = fallback

    @classmethod
    def from_settings(cls, settings: WorkshopSettings) -> "DiagnosticAssistant":
        """Gemini-backed assistant; without an API key every ask() falls back."""
        transport = None
        if settings.ai_api_key:
            transport = GeminiTransport(
                settings.ai_api_key,
                settings.ai_model,
                max_output_tokens=settings.ai_max_output_tokens,
                timeout=settings.ai_timeout_seconds,
            )
        return cls(transport, timeout_seconds=settings.ai_timeout_seconds)

    @property
    def is_configured(self) -> bool:
        return self._transport is not None

    def ask(self, user_prompt: str) -> str:
        if not user_prompt or not user_prompt.strip():
            return ""
        if self._transport is None:
            logger.warning("Assistant has no API key configured; using fallback")
            return self.fallback

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tefa-ai")
        future = executor.submit(
            self._transport.generate, self.system_prompt, user_prompt,
        )
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeout:
            logger.warning(
                f"Assistant call exceeded {self.timeout_seconds}s; using fallback"
            )
            return self.fallback
        except TransportError as exc:
            logger.warning(f"Assistant transport failed: {exc}")
            return self.fallback
        except Exception:
            logger.exception("Assistant call raised unexpectedly; using fallback")
            return self.fallback
        finally:
            # Do not wait for a call that timed out.
            executor.shutdown(wait=False)
