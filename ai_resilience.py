"""AI Resilience Layer — Circuit Breaker, Retry, Cost Tracking.

Provides a single resilient_llm_call() entry point that wraps Gemini
calls with a circuit breaker, optional retry on transient errors, and
cost/latency metrics.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

PROVIDER = "gemini"

_RETRY_WAIT = wait_exponential(multiplier=1, min=1, max=30)


# ── Circuit Breaker ─────────────────────────────────────────

@dataclass
class _ProviderState:
    failures: int = 0
    state: str = "closed"  # closed | open | half_open
    last_failure_time: float = 0.0


class CircuitBreaker:
    """Per-provider state machine: closed -> open -> half_open -> closed."""

    FAILURE_THRESHOLD = 3
    RECOVERY_TIMEOUT = 60  # seconds

    def __init__(self) -> None:
        self._providers: dict[str, _ProviderState] = {}
        self._lock = threading.Lock()

    def _get_state(self, provider: str) -> _ProviderState:
        if provider not in self._providers:
            self._providers[provider] = _ProviderState()
        return self._providers[provider]

    def record_success(self, provider: str) -> None:
        with self._lock:
            state = self._get_state(provider)
            state.failures = 0
            state.state = "closed"

    def record_failure(self, provider: str) -> None:
        with self._lock:
            state = self._get_state(provider)
            state.failures += 1
            state.last_failure_time = time.time()
            if state.failures >= self.FAILURE_THRESHOLD:
                state.state = "open"

    def is_open(self, provider: str) -> bool:
        with self._lock:
            state = self._get_state(provider)
            if state.state == "closed":
                return False
            if state.state == "open":
                elapsed = time.time() - state.last_failure_time
                if elapsed >= self.RECOVERY_TIMEOUT:
                    state.state = "half_open"
                    return False  # allow one attempt
                return True
            return False

    def get_state(self, provider: str) -> str:
        with self._lock:
            return self._get_state(provider).state

    def reset(self) -> None:
        with self._lock:
            self._providers.clear()


_circuit_breaker = CircuitBreaker()


# ── Cost Tracker ────────────────────────────────────────────

# Approximate pricing per 1M tokens (input + output averaged)
_MODEL_PRICING: dict[str, float] = {
    "gemini-2.5-flash": 0.3,
    "gemini-2.5-pro": 1.25,
    "gemini-2.0-flash": 0.075,
    "gemini-1.5-flash": 0.075,
}


class CostTracker:
    """Estimates tokens from character count and applies model-specific pricing."""

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough estimate: 1 token ~ 4 characters."""
        return max(1, len(text) // 4)

    @staticmethod
    def track_call(model: str, input_text: str, output_text: str, latency_ms: int) -> dict:
        input_tokens = CostTracker.estimate_tokens(input_text)
        output_tokens = CostTracker.estimate_tokens(output_text)
        total_tokens = input_tokens + output_tokens

        price_per_million = _MODEL_PRICING.get(model, 1.0)
        cost_usd = (total_tokens / 1_000_000) * price_per_million

        return {
            "input_tokens_est": input_tokens,
            "output_tokens_est": output_tokens,
            "total_tokens_est": total_tokens,
            "cost_estimate_usd": round(cost_usd, 6),
            "model": model,
            "latency_ms": latency_ms,
        }


# ── Transient error detection ───────────────────────────────

_TRANSIENT_ERRORS = (
    ConnectionError,
    TimeoutError,
)

_TRANSIENT_PATTERNS = (
    "rate limit",
    "resource exhausted",
    "429",
    "503",
    "502",
    "500",
    "overloaded",
    "temporarily unavailable",
    "timeout",
    "connection",
)


def _is_transient(exc: BaseException) -> bool:
    """Check if an exception is transient (worth retrying)."""
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    msg = str(exc).lower()
    return any(p in msg for p in _TRANSIENT_PATTERNS)


class TransientLLMError(Exception):
    """Wrapper for transient LLM errors that may be retried."""


class CircuitOpenError(RuntimeError):
    """Raised without calling the provider while its breaker is open."""


# ── Main entry point ────────────────────────────────────────

def _do_call(model: str, prompt: str, response_schema: dict | None, api_key: str) -> str:
    """Execute the actual Gemini call (no retry)."""
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    generation_config = None
    if response_schema is not None:
        generation_config = {
            "response_mime_type": "application/json",
            "response_schema": response_schema,
        }
    m = genai.GenerativeModel(model, generation_config=generation_config)
    response = m.generate_content(prompt)
    return response.text


def _call_once(model: str, prompt: str, response_schema: dict | None, api_key: str) -> str:
    try:
        return _do_call(model, prompt, response_schema, api_key)
    except Exception as exc:
        if _is_transient(exc):
            raise TransientLLMError(str(exc)) from exc
        raise


def resilient_llm_call(
    model: str,
    prompt: str,
    response_schema: dict | None = None,
    max_attempts: int = 1,
    api_key: str = "",
) -> tuple[str, dict]:
    """Main entry point for resilient Gemini calls.

    Args:
        model: Model name string
        prompt: The prompt text
        response_schema: JSON response schema; when given the model is asked
            for ``application/json`` output
        max_attempts: Total attempts for transient errors (1 = no retry)
        api_key: Google API key

    Returns:
        (response_text, metadata_dict) where metadata includes tokens, cost,
        latency, provider and model.
    """
    if _circuit_breaker.is_open(PROVIDER):
        raise CircuitOpenError(f"Circuit breaker open for provider: {PROVIDER}")

    retryer = Retrying(
        retry=retry_if_exception_type(TransientLLMError),
        wait=_RETRY_WAIT,
        stop=stop_after_attempt(max(1, max_attempts)),
        reraise=True,
    )

    start = time.time()
    try:
        response_text = retryer(_call_once, model, prompt, response_schema, api_key)
    except Exception:
        _circuit_breaker.record_failure(PROVIDER)
        raise

    latency_ms = int((time.time() - start) * 1000)
    _circuit_breaker.record_success(PROVIDER)

    metrics = CostTracker.track_call(model, prompt, response_text, latency_ms)
    metrics["provider"] = PROVIDER
    logger.info(
        "llm call model=%s latency_ms=%d tokens_est=%d cost_usd=%.6f",
        model, latency_ms, metrics["total_tokens_est"], metrics["cost_estimate_usd"],
    )
    return response_text, metrics


def get_circuit_breaker() -> CircuitBreaker:
    """Access the module-level circuit breaker singleton."""
    return _circuit_breaker
