"""Errors raised by source-host collaborators."""


class SourceHostError(Exception):
    """Base class for failures talking to the source host."""


class AuthError(SourceHostError):
    """Credentials were rejected by the listing endpoint."""


class NotFoundError(SourceHostError):
    """A repository could not be found or is not accessible."""


class NetworkError(SourceHostError):
    """Transport failure or unexpected HTTP status."""


class TransientFetchError(SourceHostError):
    """A page fetch failed in a way that is worth retrying."""


class ParseError(TransientFetchError):
    """A response body could not be decoded into changesets."""


class FetchTimeoutError(TransientFetchError):
    """A page fetch did not complete in time."""


class RetriesExhaustedError(SourceHostError):
    """Transient failures kept occurring after the retry budget was spent."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
