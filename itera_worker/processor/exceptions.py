class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class NotFoundError(ProcessorError):
    """Raised when a document cannot be found in the database."""


class ValidationError(ProcessorError):
    """Raised when stored input is malformed and cannot be sent to Itera."""


class InvalidTaxIdError(ValidationError):
    """Raised when a document's CNPJ contains no digits to export by."""
