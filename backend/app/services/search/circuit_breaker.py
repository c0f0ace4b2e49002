# backend/app/services/search/circuit_breaker.py
"""
Circuit breaker for the embedding provider.

After ``failure_threshold`` consecutive failures the circuit opens and
search goes straight to the keyword fallback until ``timeout_seconds`` have
passed; one trial call is then let through (half-open).
"""
from dataclasses import dataclass, field
from enum import Enum
import logging
import threading
import time
from typing import Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 3
    success_threshold: int = 1
    timeout_seconds: float = 60.0


@dataclass
class CircuitBreaker:
    """
    Thread-safe circuit breaker.

    Usage:
        if not breaker.allow():
            ...  # use fallback
        try:
            result = await call()
            breaker.record_success()
        except SomeError:
            breaker.record_failure()
    """

    name: str
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _opened_at: Optional[float] = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def allow(self) -> bool:
        """Whether a call may be attempted now."""
        with self._lock:
            if self._state != CircuitState.OPEN:
                return True
            if self._opened_at is not None and (
                time.monotonic() - self._opened_at >= self.config.timeout_seconds
            ):
                self._state = CircuitState.HALF_OPEN
                logger.info(f"Circuit {self.name}: OPEN -> HALF_OPEN")
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.config.success_threshold:
                    self._close_locked()
                    logger.info(f"Circuit {self.name}: HALF_OPEN -> CLOSED")
            else:
                self._failure_count = 0

    def record_failure(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._open_locked()
                logger.warning(f"Circuit {self.name}: HALF_OPEN -> OPEN (trial failed)")
                return
            self._failure_count += 1
            if self._state == CircuitState.CLOSED and (
                self._failure_count >= self.config.failure_threshold
            ):
                self._open_locked()
                logger.warning(
                    f"Circuit {self.name}: CLOSED -> OPEN ({self._failure_count} failures)"
                )

    def reset(self) -> None:
        with self._lock:
            self._close_locked()

    def _open_locked(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = time.monotonic()
        self._success_count = 0

    def _close_locked(self) -> None:
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._opened_at = None


EMBEDDING_CIRCUIT = CircuitBreaker(
    name="openai_embedding",
    config=CircuitBreakerConfig(failure_threshold=3, timeout_seconds=60.0),
)
