"""
Metrics Module (v1.5.0)
Track generation requests, provider calls, vocabulary violations and LLM costs.
"""
import threading
from typing import Any, Dict, Optional


def _empty() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "errors": 0,
        "errors_by_kind": {},
        "provider_calls": 0,
        "provider_errors": 0,
        "provider_latency_ms_total": 0,
        "requests_by_provider": {},
        "total_tokens": 0,
        "total_cost_usd": 0.0,
        "outfits_generated": 0,
        "vocabulary_violations": 0,
        "partial_batches": 0,
    }


# Thread-safe metrics storage
_lock = threading.Lock()
_metrics = _empty()


def increment_request(error_kind: Optional[str] = None):
    """
    Record one handled HTTP generation request.

    Args:
        error_kind: Error ``kind`` if the request failed
    """
    with _lock:
        _metrics["total_requests"] += 1

        if error_kind:
            _metrics["errors"] += 1
            by_kind = _metrics["errors_by_kind"]
            by_kind[error_kind] = by_kind.get(error_kind, 0) + 1


def record_provider_call(provider: str, latency_ms: int, error_kind: Optional[str] = None):
    """
    Record one provider round-trip.

    Args:
        provider: Provider name (openai/gemini)
        latency_ms: Wall time of the call
        error_kind: Error ``kind`` if the call failed
    """
    with _lock:
        _metrics["provider_calls"] += 1
        _metrics["provider_latency_ms_total"] += latency_ms

        if provider:
            by_provider = _metrics["requests_by_provider"]
            by_provider[provider] = by_provider.get(provider, 0) + 1

        if error_kind:
            # No token estimate for failed calls
            _metrics["provider_errors"] += 1
            return

        tokens, cost = estimate_cost(provider)
        _metrics["total_tokens"] += tokens
        _metrics["total_cost_usd"] += cost


def record_outfits(generated: int, violations: int = 0):
    """Record validated outfits and dropped closed-vocabulary violations."""
    with _lock:
        _metrics["outfits_generated"] += generated
        _metrics["vocabulary_violations"] += violations


def record_partial_batch():
    with _lock:
        _metrics["partial_batches"] += 1


def get_metrics() -> Dict[str, Any]:
    """Get current metrics snapshot."""
    with _lock:
        calls = _metrics["provider_calls"]

        return {
            "total_requests": _metrics["total_requests"],
            "errors": _metrics["errors"],
            "errors_by_kind": dict(_metrics["errors_by_kind"]),
            "provider_calls": calls,
            "provider_errors": _metrics["provider_errors"],
            "avg_provider_latency_ms": (
                round(_metrics["provider_latency_ms_total"] / calls, 1) if calls > 0 else 0.0
            ),
            "requests_by_provider": dict(_metrics["requests_by_provider"]),
            "total_tokens": _metrics["total_tokens"],
            "total_cost_usd": round(_metrics["total_cost_usd"], 4),
            "outfits_generated": _metrics["outfits_generated"],
            "vocabulary_violations": _metrics["vocabulary_violations"],
            "partial_batches": _metrics["partial_batches"],
        }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    with _lock:
        _metrics = _empty()


# Token estimation constants (approximate)
TOKENS_PER_GENERATION_CALL = 3000  # Inventory-heavy prompt + structured output

# Cost per 1K tokens (approximate, blended input/output)
COST_PER_1K_TOKENS = {
    "openai": 0.005,   # gpt-4o
    "gemini": 0.0025,  # gemini-1.5-pro
}


def estimate_cost(provider: str, tokens: int = TOKENS_PER_GENERATION_CALL) -> tuple:
    """
    Estimate cost for one provider call.

    Returns:
        (tokens, cost_usd)
    """
    rate = COST_PER_1K_TOKENS.get(provider, 0.001)
    cost = (tokens / 1000) * rate
    return tokens, round(cost, 6)
