"""
Utility Helper Functions for Memecoin Observatory
Small utilities shared by collectors, scorers and the dispatch layer
"""

import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Any, Optional, Union
from functools import wraps

logger = logging.getLogger(__name__)

# ============= Decorators =============

def retry_async(max_retries: int = 3, delay: float = 1.0, exponential_backoff: bool = True,
                exceptions: tuple = (Exception,)):
    """Async retry decorator with exponential backoff"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt == max_retries - 1:
                        break
                    wait_time = delay * (2 ** attempt) if exponential_backoff else delay
                    logger.warning(f"Attempt {attempt + 1} failed: {e}. Retrying in {wait_time}s...")
                    await asyncio.sleep(wait_time)
            raise last_exception
        return wrapper
    return decorator

def measure_time(func):
    """Measure execution time decorator"""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

# ============= Numbers =============

def safe_float(value: Any, default: float = 0.0) -> float:
    """Convert to a finite float, falling back to default"""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result

def round_half_up(value: float, places: int = 0) -> Union[int, float]:
    """Round the way humans expect (0.5 goes up), not banker's rounding"""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)

def floor_cents(amount: Decimal) -> Decimal:
    """Truncate a dollar amount to whole cents"""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_DOWN)

def format_percentage(part: float, whole: float, places: int = 1) -> str:
    """Format part/whole as a percentage string like '12.5%'"""
    if not whole:
        return f"{0:.{places}f}%"
    return f"{part / whole * 100:.{places}f}%"

# ============= Time =============

def utc_now() -> datetime:
    """Naive UTC timestamp, matching what SQLite stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def from_unix(seconds: Optional[Union[int, float]]) -> Optional[datetime]:
    """Convert a unix timestamp to a naive UTC datetime"""
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)

def age_in_days(created_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Days elapsed since created_at, or None when unknown"""
    if created_at is None:
        return None
    now = now or utc_now()
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
    return max(0.0, (now - created_at).total_seconds() / 86400)

# ============= Cache =============

class TTLCache:
    """Simple TTL cache implementation"""

    def __init__(self, ttl: int = 300):
        self.ttl = ttl
        self.cache = {}
        self.timestamps = {}

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""
        if key in self.cache:
            if time.time() - self.timestamps[key] < self.ttl:
                return self.cache[key]
            del self.cache[key]
            del self.timestamps[key]
        return None

    def set(self, key: str, value: Any):
        """Set value in cache"""
        self.cache[key] = value
        self.timestamps[key] = time.time()

    def clear(self):
        """Clear all cache"""
        self.cache.clear()
        self.timestamps.clear()

__all__ = [
    'retry_async', 'measure_time',
    'safe_float', 'round_half_up', 'floor_cents', 'format_percentage',
    'utc_now', 'from_unix', 'age_in_days',
    'TTLCache',
]
