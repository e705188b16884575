"""Errors raised by the parsing layer."""


class FinanceTrackerError(Exception):
    detail: str = "Unknown budget tracker error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.detail
        super().__init__(self.detail)


class NotNumericError(FinanceTrackerError, ValueError):
    detail = "Text is not a numeric amount"


class UnrecognizedDateError(FinanceTrackerError, ValueError):
    detail = "Text is not a recognized date phrase"
