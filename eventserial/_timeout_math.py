import threading
import time

TIMEOUT_MAX = threading.TIMEOUT_MAX


def to_deadline(timeout: float | int | None) -> float:
    """Monotonic deadline for 'timeout' seconds from now (None = forever)"""

    if timeout is None:
        return TIMEOUT_MAX
    elif timeout <= 0:
        return 0.0
    return min(time.monotonic() + timeout, TIMEOUT_MAX)


def from_deadline(deadline: float | int) -> float:
    """Seconds remaining until 'deadline', clamped to [0, TIMEOUT_MAX]"""

    if deadline >= TIMEOUT_MAX:
        return TIMEOUT_MAX
    return max(deadline - time.monotonic(), 0.0)
