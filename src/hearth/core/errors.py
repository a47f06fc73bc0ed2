"""
Hearth Errors

Every failure the service distinguishes has its own type so the API layer
can map it to a status code and the bots can decide between fail-open and
fail-closed handling.
"""


class HearthError(Exception):
    """Base error for Hearth."""

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, details: str = "", error: str | None = None) -> None:
        super().__init__(details or error or self.error)
        self.details = details
        if error:
            self.error = error

    def to_dict(self) -> dict[str, str]:
        """Machine-readable error body."""
        return {"error": self.error, "details": self.details}


class ContextValidationError(HearthError):
    """A required request field is missing or malformed."""

    status_code = 400
    error = "Invalid request"


class AuthError(HearthError):
    """No valid session for the caller."""

    status_code = 401
    error = "Unauthorized"


class StoreUnavailable(HearthError):
    """The backing context store could not be reached."""

    status_code = 500
    error = "Context store unavailable"


class UpstreamGenerationError(HearthError):
    """The text-generation service failed or is not configured."""

    status_code = 500
    error = "Text generation failed"


class MalformedUpstreamResponse(UpstreamGenerationError):
    """Generated text was expected to hold JSON but none could be extracted."""

    error = "Malformed generation response"
