"""
Runner entities: test group identifiers and run requests.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import UnknownTestGroupError


class TestGroup(str, Enum):
    """Known test group identifiers."""

    __test__ = False

    WEBSITES = "websites"
    CIRCUMVENTION = "circumvention"
    IM = "im"
    MIDDLEBOX = "middlebox"
    PERFORMANCE = "performance"
    EXPERIMENTAL = "experimental"
    DEFAULT = "default"


# Pseudo-target meaning "every runnable group"; never passed to a worker
ALL_GROUPS = "all"

# Groups run by the "all" target, in execution order
SUPPORTED_TEST_GROUPS: tuple[str, ...] = (
    TestGroup.WEBSITES.value,
    TestGroup.CIRCUMVENTION.value,
    TestGroup.IM.value,
    TestGroup.MIDDLEBOX.value,
    TestGroup.PERFORMANCE.value,
)


def expand_target(target: str, groups: tuple[str, ...] = SUPPORTED_TEST_GROUPS) -> list[str]:
    """
    Expand a run target into the ordered list of groups to execute.

    Args:
        target: A test group id or "all"
        groups: The runnable groups used for "all"

    Returns:
        ["websites", ...] for "all" (without "default"), [target] otherwise

    Raises:
        UnknownTestGroupError: If target is neither "all" nor a runnable group
    """
    if target == ALL_GROUPS:
        return [group for group in groups if group != TestGroup.DEFAULT.value]

    try:
        group = TestGroup(target)
    except ValueError:
        raise UnknownTestGroupError(target) from None
    if group is TestGroup.DEFAULT:
        raise UnknownTestGroupError(target)
    return [group.value]


@dataclass(frozen=True)
class RunRequest:
    """Request to run a test group (or all of them)."""

    target: str
    input_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RunRequest":
        """Build from a channel payload ({"target"|"testGroupToRun", "inputFile"})."""
        target = data.get("target", data.get("testGroupToRun"))
        input_file = data.get("input_file", data.get("inputFile"))
        return cls(target=target, input_file=input_file)
