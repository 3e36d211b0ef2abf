class ExtractionError(Exception):
    """Failure of a single extraction call, carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(ExtractionError):
    status_code = 400


class CredentialRejectedError(ExtractionError):
    status_code = 401


class ForbiddenError(ExtractionError):
    status_code = 403


class UpstreamError(ExtractionError):
    status_code = 500


class TransportError(ExtractionError):
    status_code = 502


class SubmissionRejectedError(ValueError):
    """Raised by the orchestrator before dispatch when the input is unusable."""
