# CoverageChecker/errors.py

class CoverageError(Exception):
    """Base error; ``status_code`` is what the HTTP layer answers with."""

    status_code = 500

    def __init__(self, message: str = "", status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class SourceUnavailable(CoverageError):
    """An upstream source could not be fetched (network, timeout, non-2xx)."""

    status_code = 502


class UpstreamTimeout(SourceUnavailable):
    status_code = 504


class MalformedResponse(CoverageError):
    """The upstream payload does not have any of the known shapes."""

    status_code = 502


class PersistFailure(CoverageError):
    """Writing the operators artifact failed. Fatal for a reconciliation run."""

    status_code = 500


class ValidationFailure(CoverageError):
    status_code = 400
