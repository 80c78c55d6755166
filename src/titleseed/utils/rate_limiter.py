"""
An asyncio token bucket limiting the overall Admin API request rate.
"""

import asyncio
import random
import time


class TokenBucketRateLimiter:
    """Caps the rate of asynchronous calls with a token bucket.

    Tokens refill continuously at ``rate`` per second up to ``capacity``.
    ``wait()`` consumes one token, sleeping when the bucket is empty.

    This is independent of the pipeline's own spacing: the pipeline staggers
    calls within a stage, while the bucket bounds every call the client makes,
    including re-dispatched items.

    Attributes:
        rate: Tokens added per second.
        capacity: Maximum number of tokens the bucket can hold.
        tokens: Current number of available tokens.
        timestamp: Last refill time.
        jitter_strength: Maximum absolute jitter added to a wait (± seconds).
        lock: Lock serializing refills.
    """

    __slots__ = (
        "rate",
        "capacity",
        "tokens",
        "timestamp",
        "lock",
        "jitter_strength",
    )

    def __init__(
        self,
        rate: float,
        burst: int = 1,
        jitter_strength: float = 0.0,
    ) -> None:
        """Initializes the token bucket.

        Args:
            rate: Number of tokens added per second. Must be positive.
            burst: Maximum bucket size.
            jitter_strength: Maximum jitter applied to a wait, in seconds.

        Raises:
            ValueError: If ``rate`` or ``burst`` is not positive.
        """
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if burst < 1:
            raise ValueError(f"burst must be at least 1, got {burst}")
        self.rate = rate
        self.capacity = burst
        self.tokens = float(burst)
        self.timestamp = time.monotonic()
        self.lock = asyncio.Lock()
        self.jitter_strength = jitter_strength

    async def wait(self) -> None:
        """Acquires a token, sleeping until one is available."""
        async with self.lock:
            now = time.monotonic()
            self.tokens = min(
                self.capacity, self.tokens + (now - self.timestamp) * self.rate
            )
            self.timestamp = now

            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return

            delay = (1.0 - self.tokens) / self.rate
            if self.jitter_strength:
                delay += random.uniform(-self.jitter_strength, self.jitter_strength)

            # Hold the lock while sleeping so waiters are served in order.
            await asyncio.sleep(max(0.0, delay))
            self.timestamp = time.monotonic()
            self.tokens = 0.0
