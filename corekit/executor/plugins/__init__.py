"""Built-in executor plugins."""

from corekit.executor.plugins.abort import AbortPlugin
from corekit.executor.plugins.retry import RetryPlugin

__all__ = [
    "AbortPlugin",
    "RetryPlugin",
]
