"""Key/value snapshot filled by a loader during one load attempt."""

from typing import Any


class Values(dict[str, Any]):
    """Values produced by a single load attempt.

    The engine hands a fresh instance to every ``Loader.load`` call and
    commits it to the store only once the call returns.
    """

    def set(self, key: str, value: Any) -> None:
        """Set a value. Dotted keys are stored verbatim."""
        self[key] = value

    def __repr__(self) -> str:
        return f"Values({dict.__repr__(self)})"
