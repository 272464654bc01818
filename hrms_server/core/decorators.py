import asyncio
import functools
import logging
import time
import uuid
from collections import deque
from typing import Deque, Dict, Optional

from fastapi import HTTPException, Request, status

from hrms_server.core.config import settings

logger = logging.getLogger(__name__)

# Calls slower than this are logged as warnings
SLOW_CALL_SECONDS = 1.0


def _find_request(args, kwargs) -> Optional[Request]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, Request):
            return value
    return None


def _client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host or None


def _report_duration(name: str, started: float, error: Optional[Exception] = None) -> None:
    elapsed = time.perf_counter() - started
    if error is not None:
        logger.error(f"{name} failed after {elapsed:.4f}s: {error}")
    elif elapsed >= SLOW_CALL_SECONDS:
        logger.warning(f"{name} was slow: {elapsed:.4f}s")
    else:
        logger.debug(f"{name} took {elapsed:.4f}s")


def log_execution_time(func):
    """Log how long the wrapped call took; works for sync and async callables"""
    if asyncio.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except HTTPException:
                _report_duration(func.__name__, started)
                raise
            except Exception as e:
                _report_duration(func.__name__, started, e)
                raise
            _report_duration(func.__name__, started)
            return result

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _report_duration(func.__name__, started, e)
            raise
        _report_duration(func.__name__, started)
        return result

    return sync_wrapper


def log_requests(func):
    """Log one line when an endpoint starts and one when it finishes, tagged with a short id"""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        request = _find_request(args, kwargs)
        tag = uuid.uuid4().hex[:8]

        if request is not None:
            logger.info(f"[{tag}] {request.method} {request.url.path} from {_client_ip(request) or 'unknown'}")
        else:
            logger.info(f"[{tag}] {func.__name__}")

        try:
            result = await func(*args, **kwargs)
        except HTTPException as e:
            log = logger.warning if e.status_code >= 500 else logger.info
            log(f"[{tag}] {e.status_code} {e.detail}")
            raise
        except Exception as e:
            logger.exception(f"[{tag}] unhandled {type(e).__name__}")
            raise

        logger.info(f"[{tag}] ok")
        return result

    return wrapper


class SlidingWindowLimiter:
    """Counts calls per key over the last ``period`` seconds"""

    def __init__(self, calls: int, period: float):
        self.calls = calls
        self.period = period
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = 0.0

    def hit(self, key: str, limit: Optional[int] = None, now: Optional[float] = None) -> bool:
        """Record a call for ``key``; False when the window is already full"""
        limit = self.calls if limit is None else limit
        now = time.monotonic() if now is None else now
        self._sweep(now)
        window = self._hits.setdefault(key, deque())
        while window and now - window[0] >= self.period:
            window.popleft()
        if len(window) >= limit:
            return False
        window.append(now)
        return True

    def _sweep(self, now: float) -> None:
        """Forget clients whose last call has left the window"""
        if now - self._last_sweep < self.period:
            return
        self._last_sweep = now
        for key in [k for k, w in self._hits.items() if not w or now - w[-1] >= self.period]:
            del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()


def rate_limit(calls: int = 60, period: int = 60):
    """
    Per-client-IP limit for an endpoint. Requests without a client address
    share one bucket that allows ten times as many calls.
    """
    limiter = SlidingWindowLimiter(calls, period)

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if settings.RATE_LIMIT_ENABLED:
                ip = _client_ip(_find_request(args, kwargs))
                key, limit = (ip, calls) if ip else ("*", calls * 10)

                if not limiter.hit(key, limit):
                    logger.warning(f"Rate limit hit on {func.__name__} for {key}: {limit} calls per {period}s")
                    raise HTTPException(
                        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                        detail=f"Too many requests. Try again in {period} seconds.",
                        headers={"Retry-After": str(period)},
                    )

            return await func(*args, **kwargs)

        wrapper.limiter = limiter
        return wrapper

    return decorator
