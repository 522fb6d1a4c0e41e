# Retry utilities package

from .context import Context, ContextCancelledError, DeadlineExceededError
from .operation import FailedPermanentlyError, RetryConfigError, do, do2
from .strategies import ExponentialStrategy, FixedStrategy, Strategy, exponential, fixed

__all__ = [
    "Context",
    "ContextCancelledError",
    "DeadlineExceededError",
    "FailedPermanentlyError",
    "RetryConfigError",
    "do",
    "do2",
    "ExponentialStrategy",
    "FixedStrategy",
    "Strategy",
    "exponential",
    "fixed",
]
