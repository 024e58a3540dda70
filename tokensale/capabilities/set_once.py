"""A value that can be written exactly once."""

from typing import Generic, TypeVar

from ..core.exceptions import PreconditionError
from ..core.types import FailureReason

T = TypeVar("T")


class SetOnce(Generic[T]):
    """Optional value moving from unset to set a single time."""

    def __init__(self) -> None:
        self._value: T | None = None

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def get(self) -> T | None:
        return self._value

    def set(self, value: T) -> None:
        if self.is_set:
            raise PreconditionError(FailureReason.ALREADY_SET)
        if value is None:
            raise ValueError("SetOnce cannot be set to None")
        self._value = value

    def __repr__(self) -> str:
        return f"SetOnce({self._value!r})"
