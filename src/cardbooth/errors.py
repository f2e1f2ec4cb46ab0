"""Error taxonomy shared by the core and the HTTP layer."""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable machine-readable error codes returned to clients."""

    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_USED = "ALREADY_USED"
    AI_FAILED = "AI_FAILED"
    PRINT_QUEUE_FAILED = "PRINT_QUEUE_FAILED"
    INVALID_STATUS = "INVALID_STATUS"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class CardboothError(Exception):
    """Base exception carrying an error code, a client-safe message and an HTTP status."""

    code: ErrorCode = ErrorCode.INVALID_INPUT
    status_code: int = 400
    default_message: str = "Invalid request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(CardboothError):
    code = ErrorCode.INVALID_INPUT
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(CardboothError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Not found"


class AlreadyUsedError(CardboothError):
    code = ErrorCode.ALREADY_USED
    status_code = 409
    default_message = "This QR code has already been used"


class InvalidStatusError(CardboothError):
    code = ErrorCode.INVALID_STATUS
    status_code = 400
    default_message = "status must be printed or failed"


class PrintQueueError(CardboothError):
    code = ErrorCode.PRINT_QUEUE_FAILED
    status_code = 500
    default_message = "Failed to queue print"


class GenerationError(CardboothError):
    """Raised when the model could not produce valid content within the attempt budget."""

    code = ErrorCode.AI_FAILED
    status_code = 500
    default_message = "The signal is unstable right now, please try again"


class ServiceUnavailableError(CardboothError):
    """Raised when a request arrives before the application has finished starting."""

    code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503
    default_message = "Service is starting, please try again"
