# src/image_derivatives/core/error_handling.py

import functools
import logging
import subprocess
from typing import Any, Callable, Dict, List, Type, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from PIL import UnidentifiedImageError

from .exceptions import DerivativesPipelineError

F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(error_cls: Type[DerivativesPipelineError]) -> Callable[[F], F]:
    """
    Decorator that converts failures of a pipeline step into ``error_cls``.

    Pipeline errors raised by the wrapped function pass through unchanged.
    Everything else is logged with its traceback and re-raised as
    ``error_cls`` chained to the original exception.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = logging.getLogger(func.__module__ + "." + func.__name__)
            try:
                return func(*args, **kwargs)
            except DerivativesPipelineError:
                raise
            except (ClientError, BotoCoreError) as e:
                logger.error(f"S3 operation failed in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"S3 operation failed in {func.__name__}: {e}") from e
            except UnidentifiedImageError as e:
                logger.error(f"Unreadable image in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"Failed to identify image in {func.__name__}: {e}") from e
            except (subprocess.SubprocessError, OSError) as e:
                logger.error(f"Local operation failed in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"{func.__name__} failed: {e}") from e
            except Exception as e:
                logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"{func.__name__} failed: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator


class VersionErrorCollector:
    """
    Context manager for one invocation's version loop, collecting and
    summarizing per-version errors.
    """

    def __init__(self, operation_name: str = "Version processing"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self) -> "VersionErrorCollector":
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for version "
                    f"'{error_detail['version']}' ({error_detail['type']}): "
                    f"{error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Exceptions not reported through add_error propagate
        return False

    def add_error(self, error: Exception, version_name: str) -> None:
        """Record the failure of a single version."""
        self.errors.append(
            {"version": version_name, "type": type(error).__name__, "error": str(error)}
        )
        self.logger.debug(
            f"Error added for version '{version_name}' in {self.operation_name}: {error}"
        )

    @property
    def failed_versions(self) -> List[str]:
        return [error["version"] for error in self.errors]
