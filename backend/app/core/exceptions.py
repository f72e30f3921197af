"""
Error taxonomy for oracle consultations.

Each error carries the HTTP status code and the user-facing message the API
layer returns, so the orchestrator stays transport-agnostic.
"""

from typing import Optional


class OracleError(Exception):
    """Base class for all consultation errors."""

    status_code: int = 500
    reason: str = "FAILED"
    default_message: str = "Failed to consult the oracle"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        # Filled in by the orchestrator when a consultation stops
        self.state = None
        self.trace = []
        super().__init__(self.message)


class QuestionRequiredError(OracleError):
    """The request carried no question."""

    status_code = 400
    reason = "MISSING_QUESTION"
    default_message = "Question is required"


class AlreadyConsultedTodayError(OracleError):
    """The email already received a reading on the current calendar day."""

    status_code = 429
    reason = "ALREADY_CONSULTED_TODAY"
    default_message = (
        "You have already consulted the oracle today. "
        "Please return tomorrow for new guidance."
    )


class LedgerWriteFailedError(OracleError):
    """The consultation could not be recorded, so no reading is returned."""

    status_code = 500
    reason = "LEDGER_WRITE_FAILED"
    default_message = "Failed to record your consultation. Please try again later."


class StoreUnavailable(OracleError):
    """Raised by ledger backends when the underlying storage cannot be reached."""

    reason = "STORE_UNAVAILABLE"
    default_message = "Consultation ledger is unavailable"


class GenerationFailure(OracleError):
    """Raised by reading generators; recovered with the fallback reading."""

    reason = "GENERATION_FAILED"
    default_message = "Reading generation failed"


class NotificationFailure(OracleError):
    """Raised inside notifiers; never escapes into the request flow."""

    reason = "NOTIFICATION_FAILED"
    default_message = "Failed to send consultation email"
