import logging
import time
from typing import Callable, Optional, Type, TypeVar, Tuple

T = TypeVar("T")

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, backoff_seconds: float, linear: bool = False) -> float:
    """Delay before retry number `attempt` (1-based): backoff * attempt when linear, else backoff * 2**(attempt-1)."""
    if linear:
        return backoff_seconds * attempt
    return backoff_seconds * (2 ** (attempt - 1))


def with_retry(
    fn: Callable[[], T],
    *,
    retries: int = 3,
    backoff_seconds: float = 0.5,
    linear: bool = False,
    retry_on: Optional[Tuple[Type[BaseException], ...]] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    label: str = "call",
) -> T:
    """Run fn() with up to `retries` retries on the given exception types, sleeping between attempts (exponential backoff, or linear when linear=True). The last error is re-raised once retries are exhausted; other exceptions propagate immediately.
    Why available: Used by the inference invoker to retry a single model on overload / rate limiting before failing over."""
    exc_types: Tuple[Type[BaseException], ...] = retry_on or (Exception,)

    last_err: Optional[BaseException] = None

    for attempt in range(retries + 1):
        try:
            return fn()
        except exc_types as e:
            last_err = e
            if attempt >= retries:
                raise
            sleep_s = backoff_delay(attempt + 1, backoff_seconds, linear=linear)
            logger.warning(
                "%s failed (%s), retrying in %.1fs (retry %d/%d)",
                label, e, sleep_s, attempt + 1, retries,
            )
            sleep(sleep_s)

    # Should be unreachable, but keeps type-checkers happy.
    assert last_err is not None
    raise last_err
