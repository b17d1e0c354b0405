import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    """
    Process-local fixed-window request counter, one window per key.

    - Built once at app start, shared by every request.
    - State lives in memory: it resets on restart and is not shared between
      instances. A multi-instance deployment needs a shared store instead.
    - When the map reaches ``max_keys`` expired windows are swept; if it is
      still full, the oldest window is evicted.
    """

    def __init__(self, max_requests: int, window_seconds: float,
                 max_keys: int = 10000, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (count, reset_at)
        self._windows: Dict[str, Tuple[int, float]] = {}

    def try_consume(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._windows.get(key)
            if entry is None or now >= entry[1]:
                if entry is None and len(self._windows) >= self.max_keys:
                    self._sweep_locked(now)
                self._windows[key] = (1, now + self.window_seconds)
                return True

            count, reset_at = entry
            if count >= self.max_requests:
                return False
            self._windows[key] = (count + 1, reset_at)
            return True

    def sweep(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]
        for k in expired:
            del self._windows[k]
        if not expired and len(self._windows) >= self.max_keys:
            oldest = min(self._windows, key=lambda k: self._windows[k][1])
            del self._windows[oldest]
            return 1
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
