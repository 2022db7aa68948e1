import functools
import inspect
import logging
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


def logged(
    entry: bool = True,
    exit: bool = True,
    level: int = logging.DEBUG,
    log_args: bool = False,
    log_result: bool = False,
) -> Callable[[F], F]:
    """Trace entry and exit of a sync or async callable.

    Uses the logger of the decorated function's module. Failures are logged
    and re-raised unchanged.
    """

    def decorator(func: F) -> F:
        from .structured_logger import get_logger

        module = func.__module__
        log = get_logger(module[len("aitana."):] if module.startswith("aitana.") else module)
        name = func.__name__
        signature = inspect.signature(func)

        def _enter(args: tuple, kwargs: dict) -> None:
            if not entry:
                return
            fields: dict[str, Any] = {}
            if log_args:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                fields = {k: v for k, v in bound.arguments.items() if k != "self" and not k.startswith("_")}
            log._log(level, f"→ {name}", **fields)

        def _leave(result: Any) -> None:
            if not exit:
                return
            if log_result and result is not None:
                log._log(level, f"← {name}", result=result)
            else:
                log._log(level, f"← {name}")

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                _enter(args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    log.error(f"✗ {name}", error=str(e)[:100])
                    raise
                _leave(result)
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            _enter(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(f"✗ {name}", error=str(e)[:100])
                raise
            _leave(result)
            return result

        return sync_wrapper  # type: ignore[return-value]

    return decorator
