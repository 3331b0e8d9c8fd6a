from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class ProvideValue(Generic[T]):
    """Dependency override that hands out a prepared object."""

    def __init__(self, value: T) -> None:
        self._value = value

    def __call__(self) -> T:
        return self._value

