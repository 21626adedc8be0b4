from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


RATE_LIMITED_PATH = "/api/me"


class SlidingWindowLimiter:
    """Per-client request counter over a sliding time window.

    A client's timestamps are dropped once they leave the window, and the
    client entry goes with them, so idle clients hold no memory.
    """

    def __init__(self, max_requests: int, window_seconds: float) -> None:
        self.max_requests = max(1, max_requests)
        self.window_seconds = max(1, window_seconds)
        self._requests: dict[str, deque[float]] = {}
        self._next_sweep = 0.0
        self._lock = RLock()

    def acquire(self, client_key: str, now: float) -> int | None:
        """Record a request, or return the Retry-After seconds when over limit."""

        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)

            timestamps = self._requests.get(client_key)
            if timestamps is None:
                timestamps = self._requests[client_key] = deque()
            self._evict(timestamps, now)

            if len(timestamps) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - timestamps[0])))

            timestamps.append(now)
            return None

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._requests)

    def _evict(self, timestamps: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _sweep(self, now: float) -> None:
        for client_key in list(self._requests):
            timestamps = self._requests[client_key]
            self._evict(timestamps, now)
            if not timestamps:
                del self._requests[client_key]
        self._next_sweep = now + self.window_seconds


class StatsRateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit GET /api/me, which triggers a live GitHub fetch per call."""

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        super().__init__(app)
        self.limiter = SlidingWindowLimiter(requests_per_window, window_seconds)
        self._clock = clock

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or request.url.path != RATE_LIMITED_PATH:
            return await call_next(request)

        retry_after = self.limiter.acquire(client_key(request), self._clock())
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)


def client_key(request: Request) -> str:
    """Identify the caller by the first X-Forwarded-For hop or the peer host."""

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"

    if request.client and request.client.host:
        return request.client.host

    return "unknown"
