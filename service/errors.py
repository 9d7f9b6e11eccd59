"""
Errors raised by the scheduling engine.

Only malformed input is raised. Sessions that cannot be placed are reported
in ``ScheduleResult.unplaced`` instead.
"""
from typing import Iterable, List


class InvalidInputError(ValueError):
    """Input rejected before any allocation or audit work started."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")
