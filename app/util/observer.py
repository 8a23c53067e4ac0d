from typing import Generic, TypeVar

T = TypeVar("T")


class ValueChangeObserver(Generic[T]):
    """Remembers the last value it was shown and reports when a new one differs."""

    def __init__(self) -> None:
        self._value: T | None = None
        self._seen = False

    def update_and_check_if_changed(self, new_value: T) -> bool:
        # The very first value always counts as a change
        changed = not self._seen or self._value != new_value
        if changed:
            self._value = new_value
            self._seen = True
        return changed
