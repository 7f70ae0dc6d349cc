"""
TEFA – Workshop Settings
========================
Runtime configuration for the workshop core.

Values come from the environment. Engines never read os.environ
themselves; they receive a WorkshopSettings instance at wiring time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# ── Billing ───────────────────────────────────────────────────
# Flat labor fee charged on every service job (rupiah).
DEFAULT_LABOR_FEE = 50_000
DEFAULT_CURRENCY = "IDR"

# ── Display codes ─────────────────────────────────────────────
SERVICE_CODE_PREFIX = "SRV"
RETAIL_CODE_PREFIX = "TRX"

# ── AI assistant ──────────────────────────────────────────────
DEFAULT_AI_MODEL = "gemini-2.5-flash"
DEFAULT_AI_TIMEOUT_SECONDS = 15.0
DEFAULT_AI_MAX_OUTPUT_TOKENS = 250

# ── Logging ───────────────────────────────────────────────────
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got '{raw}'.") from None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got '{raw}'.") from None


@dataclass(frozen=True)
class WorkshopSettings:
    """
    Immutable settings bundle handed to every engine service.

    Fields:
        labor_fee:           Base labor charge added to every job total.
        currency:            ISO 4217 code used for display only.
        service_code_prefix: Prefix of job display codes (SRV-1234).
        retail_code_prefix:  Prefix of retail transaction codes (TRX-12345).
        strict_transitions:  Enforce the job status transition table.
        ai_api_key:          Credential for the diagnostic assistant.
        ai_model:            Model name sent to the assistant transport.
        ai_timeout_seconds:  Upper bound for one assistant call.
        ai_max_output_tokens: Output cap requested from the assistant.
        log_level:           Root log level used by configure_logging().
    """

    labor_fee: int = DEFAULT_LABOR_FEE
    currency: str = DEFAULT_CURRENCY
    service_code_prefix: str = SERVICE_CODE_PREFIX
    retail_code_prefix: str = RETAIL_CODE_PREFIX
    strict_transitions: bool = False
    ai_api_key: Optional[str] = None
    ai_model: str = DEFAULT_AI_MODEL
    ai_timeout_seconds: float = DEFAULT_AI_TIMEOUT_SECONDS
    ai_max_output_tokens: int = DEFAULT_AI_MAX_OUTPUT_TOKENS
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if not isinstance(self.labor_fee, int) or self.labor_fee < 0:
            raise ValueError("labor_fee must be a non-negative integer.")
        if not self.currency or len(self.currency) != 3:
            raise ValueError("currency must be 3-letter ISO 4217 code.")
        if not self.service_code_prefix or not self.retail_code_prefix:
            raise ValueError("code prefixes must be non-empty.")
        if self.ai_timeout_seconds <= 0:
            raise ValueError("ai_timeout_seconds must be positive.")
        if self.ai_max_output_tokens <= 0:
            raise ValueError("ai_max_output_tokens must be positive.")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "WorkshopSettings":
        """Build settings from TEFA_* environment variables."""
        env = os.environ if env is None else env
        api_key = env.get("TEFA_AI_API_KEY") or env.get("API_KEY") or None
        return cls(
            labor_fee=_env_int(env, "TEFA_LABOR_FEE", DEFAULT_LABOR_FEE),
            currency=env.get("TEFA_CURRENCY", DEFAULT_CURRENCY),
            service_code_prefix=env.get("TEFA_SERVICE_CODE_PREFIX", SERVICE_CODE_PREFIX),
            retail_code_prefix=env.get("TEFA_RETAIL_CODE_PREFIX", RETAIL_CODE_PREFIX),
            strict_transitions=(
                env.get("TEFA_STRICT_TRANSITIONS", "").strip().lower() in _TRUTHY
            ),
            ai_api_key=api_key,
            ai_model=env.get("TEFA_AI_MODEL", DEFAULT_AI_MODEL),
            ai_timeout_seconds=_env_float(
                env, "TEFA_AI_TIMEOUT_SECONDS", DEFAULT_AI_TIMEOUT_SECONDS,
            ),
            ai_max_output_tokens=_env_int(
                env, "TEFA_AI_MAX_OUTPUT_TOKENS", DEFAULT_AI_MAX_OUTPUT_TOKENS,
            ),
            log_level=env.get("TEFA_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the root logger (idempotent)."""
    level_name = (level or os.environ.get("TEFA_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
    logging.getLogger("tefa").setLevel(level_name)
