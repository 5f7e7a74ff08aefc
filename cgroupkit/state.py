"""Freezer state of a cgroup in the unified hierarchy."""

from __future__ import annotations

import enum
import os

from .resources import Value

_CGROUP_FREEZE = "cgroup.freeze"


class State(str, enum.Enum):
    """State of a cgroup as seen through cgroup.freeze."""

    UNKNOWN = ""
    THAWED = "thawed"
    FROZEN = "frozen"
    DELETED = "deleted"

    def values(self) -> list[Value]:
        """Settings that put a cgroup into this state.

        Only FROZEN and THAWED carry a value that can be written; writing
        the value of any other state fails with InvalidFormatError.
        """
        if self is State.FROZEN:
            return [Value(_CGROUP_FREEZE, "1")]
        if self is State.THAWED:
            return [Value(_CGROUP_FREEZE, "0")]
        return [Value(_CGROUP_FREEZE, None)]  # type: ignore[arg-type]


def fetch_state(path: str | os.PathLike[str]) -> State:
    """Read the current freezer state of the cgroup directory path."""
    with open(os.path.join(path, _CGROUP_FREEZE), encoding="utf-8") as f:
        current = f.read().strip()
    if current == "1":
        return State.FROZEN
    if current == "0":
        return State.THAWED
    return State.UNKNOWN