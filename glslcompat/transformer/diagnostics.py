"""Throttled warning diagnostics.

Some warnings fire once per affected node. Outside of verbose mode only the
first occurrence of such a class of warning is logged, and the rest are folded
into one summary when the run flushes its diagnostics.
"""

from loguru import logger


class ThrottledDiagnostic:
    """Per-run counter for one class of warning.

    Args:
        verbose: Log every occurrence instead of only the first
        description: Plural description used in the suppressed-count summary
    """

    def __init__(self, verbose: bool, description: str):
        self.verbose = verbose
        self.description = description
        self.count = 0

    @property
    def suppressed(self) -> int:
        if self.verbose:
            return 0
        return max(self.count - 1, 0)

    def emit(self, message: str) -> None:
        self.count += 1
        if self.verbose:
            logger.warning(message)
        elif self.count == 1:
            logger.warning(
                f"{message} and omitting further such messages outside of verbose mode."
            )

    def flush(self) -> None:
        """Log the summary of suppressed occurrences and reset the counter."""
        if self.suppressed:
            logger.warning(f"Suppressed {self.suppressed} further {self.description}.")
        self.count = 0
