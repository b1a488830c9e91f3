"""Observable single-value state channel."""

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")


class ObservableState(Generic[T]):
    """Holds the latest value and notifies subscribers on change.

    Subscribers are called synchronously with the new value. Setting an
    equal value is a no-op.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
