from collections.abc import Iterable
from enum import Enum


class StatusOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    PROCESSING = "processing"


class StatusClassifier:
    """Maps a free-form Itera status string to success, error or still processing.

    Matching is a case-insensitive substring test; success terms are checked
    before error terms.
    """

    SUCCESS_TERMS: tuple[str, ...] = ("Concluido", "Concluded", "Success", "Completed")
    ERROR_TERMS: tuple[str, ...] = ("Erro", "Error", "Failed", "Rejected")

    def __init__(
        self,
        success_terms: Iterable[str] | None = None,
        error_terms: Iterable[str] | None = None,
    ) -> None:
        self._success = [t.casefold() for t in (success_terms or self.SUCCESS_TERMS)]
        self._error = [t.casefold() for t in (error_terms or self.ERROR_TERMS)]

    def classify(self, status: str | None) -> StatusOutcome:
        value = (status or "").casefold()
        if any(term in value for term in self._success):
            return StatusOutcome.SUCCESS
        if any(term in value for term in self._error):
            return StatusOutcome.ERROR
        return StatusOutcome.PROCESSING
