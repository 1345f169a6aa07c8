"""Per-line error handling policy for patch runs."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional

from .errors import ErrorCategory, ErrorRecord, PatchAborted

log = logging.getLogger(__name__)


class ErrorPolicy:
    """Records recoverable errors and decides whether the run may continue.

    In the default skip-and-continue mode every problem is recorded and the
    offending line is left untouched. With ``halt_on_error`` the first
    recorded problem stops the run.
    """

    def __init__(self, *, halt_on_error: bool = False) -> None:
        self.halt_on_error = halt_on_error
        self.records: List[ErrorRecord] = []
        self._counts: Counter = Counter()

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> None:
        """Record an error, raising ``PatchAborted`` when halting is enabled."""

        self.records.append(ErrorRecord(category=category, message=message, details=details))
        self._counts[category] += 1
        log.warning(message)

        if self.halt_on_error:
            raise PatchAborted(f"{message} Stopping because halting on errors is enabled.")

    @property
    def total(self) -> int:
        return len(self.records)

    def counts(self) -> Dict[ErrorCategory, int]:
        """Return the number of recorded errors per category."""

        return dict(self._counts)

    def messages(self) -> List[str]:
        return [record.message for record in self.records]
