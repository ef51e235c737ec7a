"""
Decorators for error handling and request logging.

Wraps GitHub API operations so that every failure leaving the service layer
is a GitHubProjectsError carrying the stage that failed. Calls are never
retried: a failed request is terminal for that call.
"""

import logging
import time
from functools import wraps
from typing import Callable, TypeVar, Optional

import requests

from .errors import GitHubProjectsError, FetchError
from .log_sanitizer import safe_log_error, sanitize_error

# Return type of the wrapped call
T = TypeVar('T')

logger = logging.getLogger(__name__)


def handle_github_error(stage: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator mapping unexpected exceptions to FetchError.

    Errors that are already GitHubProjectsError pass through untouched.
    Transport errors from requests and shape errors from decoding
    (KeyError, TypeError, ValueError) become FetchError with the stage
    as message prefix.

    Args:
        stage: Human-readable description of the operation, e.g.
               "failed to fetch iteration items"

    Example:
        @handle_github_error("failed to fetch project fields")
        def get_iteration_field(self):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GitHubProjectsError:
                raise
            except requests.RequestException as e:
                logger.error(safe_log_error(e, f"GitHub API error in {func.__name__}"))
                raise FetchError(
                    message=f"{stage}: {sanitize_error(e)}",
                    status_code=getattr(e.response, "status_code", None),
                    original_error=e
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.error(safe_log_error(e, f"Unexpected response shape in {func.__name__}"))
                raise FetchError(
                    message=f"{stage}: unexpected response shape ({type(e).__name__}: {e})",
                    original_error=e
                )

        return wrapper
    return decorator


def log_execution(
    level: int = logging.DEBUG,
    log_args: bool = False
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator tracing entry to and exit from a service method.

    Args:
        level: Level for the trace lines
        log_args: Include call arguments (never credentials; the client
                  holds those, not the service methods)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs):
            name = func.__qualname__
            # args[0] is self for service methods
            call = f"{name}{args[1:]} {kwargs}" if log_args else name
            logger.log(level, f"-> {call}")

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.log(level, f"<- {name} raised {type(e).__name__}: {sanitize_error(e)}")
                raise

            logger.log(level, f"<- {name} ok")
            return result

        return wrapper
    return decorator


class PerformanceMonitor:
    """
    Times a block, such as a full pagination run.

    Logs the elapsed time at DEBUG, or a WARNING when it exceeds the
    threshold.
    """

    def __init__(self, operation_name: str, warn_threshold_ms: float = 1000.0):
        self.operation_name = operation_name
        self.warn_threshold_ms = warn_threshold_ms
        self._started: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._started) * 1000

        if self.duration_ms > self.warn_threshold_ms:
            logger.warning(
                f"{self.operation_name} was slow: {self.duration_ms:.0f}ms "
                f"(warning above {self.warn_threshold_ms:.0f}ms)"
            )
        else:
            logger.debug(f"{self.operation_name} took {self.duration_ms:.0f}ms")
        return False
