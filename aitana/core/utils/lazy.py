"""Process-wide singletons built on first use.

Provider SDK clients need credentials that tests do not have, so nothing is
constructed at import time. ``Lazy.reset_all()`` drops every cached value.
"""

import threading
import weakref
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class Lazy(Generic[T]):
    """Lock-guarded lazy value.

    Usage:
        _openai = Lazy(lambda: AsyncOpenAI(api_key=OPENAI_API_KEY))
        client = _openai.get()
    """

    _instances: "weakref.WeakSet[Lazy]" = weakref.WeakSet()

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: object = _UNSET
        self._lock = threading.Lock()
        Lazy._instances.add(self)

    @property
    def is_initialized(self) -> bool:
        return self._value is not _UNSET

    def get(self) -> T:
        if self._value is _UNSET:
            with self._lock:
                if self._value is _UNSET:
                    self._value = self._factory()
        return self._value  # type: ignore[return-value]

    def reset(self) -> None:
        with self._lock:
            self._value = _UNSET

    @classmethod
    def reset_all(cls) -> None:
        for lazy in list(cls._instances):
            lazy.reset()
