"""Client Side Throttling

Token bucket limiter used by the HTTP transport when
``NacosClientConfig.requests_per_second`` is set.
"""

import time
import threading


class RateLimiter:
    """Thread-safe token bucket rate limiter.

    The bucket holds at most ``requests_per_second`` tokens (never fewer
    than one) and refills continuously.
    """

    def __init__(self, requests_per_second: float):
        """Initialize rate limiter.

        Args:
            requests_per_second: Maximum sustained request rate, must be positive

        Raises:
            ValueError: If the rate is not positive
        """
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be positive, got {requests_per_second}")
        self.rate = requests_per_second
        self.capacity = max(1.0, requests_per_second)
        self.tokens = self.capacity
        self.last_update = time.monotonic()
        self.lock = threading.Lock()

    def _refill_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_update = now

    def acquire(self, tokens: int = 1) -> None:
        """Take tokens from the bucket, sleeping until enough are available.

        Raises:
            ValueError: If more tokens are requested than the bucket holds
        """
        if tokens > self.capacity:
            raise ValueError(f"Cannot acquire {tokens} tokens, bucket capacity is {self.capacity}")
        while True:
            with self.lock:
                self._refill_tokens()
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                wait_time = (tokens - self.tokens) / self.rate

            # sleep outside the lock so other threads can refill/check
            time.sleep(wait_time)

    def try_acquire(self, tokens: int = 1) -> bool:
        """Take tokens without blocking.

        Returns:
            True if tokens were acquired, False otherwise
        """
        with self.lock:
            self._refill_tokens()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False
