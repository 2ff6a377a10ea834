import threading
import time
from collections import defaultdict, deque

# endpoint -> (intentos, ventana en segundos)
AUTH_LIMITS: dict[str, tuple[int, int]] = {
    "auth.login": (10, 60),
}
DEFAULT_AUTH_LIMIT = (20, 60)

# key -> deque[timestamps]
_BUCKETS: dict[str, deque[float]] = defaultdict(deque)
_LOCK = threading.Lock()


def limit_for(endpoint: str) -> tuple[int, int]:
    return AUTH_LIMITS.get(endpoint, DEFAULT_AUTH_LIMIT)


def hit(key: str, limit: int, window_sec: int) -> bool:
    """
    Ventana deslizante en memoria (por proceso). True si se permite.
    """
    now = time.monotonic()
    cutoff = now - window_sec

    with _LOCK:
        q = _BUCKETS[key]
        while q and q[0] < cutoff:
            q.popleft()

        if len(q) >= limit:
            return False

        q.append(now)
        return True


def reset() -> None:
    with _LOCK:
        _BUCKETS.clear()
