"""
Rate Limiting Module (v2.0.0)
IP-based and user-based rate limiting with sliding window.

Generation endpoints cost a provider round-trip each, so they get tighter
limits than the default.
"""
import time
import threading
import logging
from collections import defaultdict
from typing import Optional, Dict, Tuple
from dataclasses import dataclass
from fastapi import Depends, Request, HTTPException

from stylist_service.core.auth import get_current_user_id

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


@dataclass
class RateLimitConfig:
    """Rate limit configuration for an endpoint."""
    requests_per_minute: int = 10


# Default configurations
RATE_LIMITS: Dict[str, RateLimitConfig] = {
    "/outfits/generate": RateLimitConfig(requests_per_minute=10),
    # One request fans out to several provider calls
    "/outfits/weekly": RateLimitConfig(requests_per_minute=3),
    "/outfits/seasonal": RateLimitConfig(requests_per_minute=3),
    "/recommendations": RateLimitConfig(requests_per_minute=5),
    "/recommendations/declutter": RateLimitConfig(requests_per_minute=5),
    "/wardrobe/analysis": RateLimitConfig(requests_per_minute=3),
    "/profile/analysis": RateLimitConfig(requests_per_minute=3),
    "default": RateLimitConfig(requests_per_minute=30),
}


class SlidingWindowRateLimiter:
    """
    Sliding window rate limiter with IP and user tracking.
    """

    def __init__(self, window_seconds: int = WINDOW_SECONDS):
        # Structure: {key: [timestamp, ...]}
        self._requests: Dict[str, list] = defaultdict(list)
        self._window = window_seconds
        self._lock = threading.Lock()

    def _cleanup_old_requests(self, key: str, now: float) -> None:
        """Remove requests older than window."""
        cutoff = now - self._window
        self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]

    def _retry_after(self, key: str, now: float) -> int:
        return max(1, int(self._window - (now - self._requests[key][0])))

    def check_and_record(
        self,
        ip: str,
        user_id: Optional[str],
        endpoint: str
    ) -> Tuple[bool, int]:
        """
        Check the limit and, when allowed, record the request.

        Args:
            ip: Client IP address
            user_id: Caller user id (if any)
            endpoint: Request endpoint path

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        config = RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
        keys = [f"ip:{ip}:{endpoint}"]
        if user_id:
            keys.append(f"user:{user_id}:{endpoint}")

        with self._lock:
            now = time.time()
            for key in keys:
                self._cleanup_old_requests(key, now)
                if len(self._requests[key]) >= config.requests_per_minute:
                    return False, self._retry_after(key, now)

            for key in keys:
                self._requests[key].append(now)

        return True, 0

    def reset(self):
        """Forget all recorded requests (for testing)."""
        with self._lock:
            self._requests.clear()


# Global rate limiter instance
rate_limiter = SlidingWindowRateLimiter()


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request.
    Handles X-Forwarded-For for reverse proxy setups.
    """
    # Check for forwarded IP
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take first IP in chain
        return forwarded.split(",")[0].strip()

    # Fall back to direct client
    if request.client:
        return request.client.host

    return "unknown"


async def check_rate_limit(
    request: Request,
    user_id: str = Depends(get_current_user_id)
) -> None:
    """
    FastAPI dependency for rate limiting.

    Usage:
        @router.post("/endpoint", dependencies=[Depends(check_rate_limit)])

    Raises:
        HTTPException 429: If rate limit exceeded
    """
    ip = get_client_ip(request)
    endpoint = request.url.path

    allowed, retry_after = rate_limiter.check_and_record(ip, user_id, endpoint)

    if not allowed:
        logger.warning(f"Rate limit exceeded: IP={ip}, user={user_id}, endpoint={endpoint}")
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Try again in {retry_after}s",
            headers={"Retry-After": str(retry_after)}
        )
