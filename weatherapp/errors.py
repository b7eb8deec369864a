# ABOUTME: Error taxonomy for the weather lookup pipeline.
# ABOUTME: Each error knows its HTTP status code and JSON error body.

GENERIC_FAILURE_MESSAGE = "Failed to process your request."


class WeatherLookupError(Exception):
    """Base class for failures surfaced to the HTTP client as a JSON error body."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidQuery(WeatherLookupError):
    """No usable location parameter (or conflicting ones) was given."""

    status_code = 400


class LocationNotFound(WeatherLookupError):
    """A city search returned no matches."""

    status_code = 404


class UpstreamFailure(WeatherLookupError):
    """An upstream provider call errored, returned non-2xx, or timed out.

    ``source`` names the failed call ("forecast", "reverse geocode" or
    "geocode search") so logs and error details can point at it.
    """

    def __init__(self, source: str, reason: str | None = None):
        details = f"{source} request failed"
        if reason:
            details = f"{details}: {reason}"
        super().__init__(GENERIC_FAILURE_MESSAGE, details=details)
        self.source = source


class InternalError(WeatherLookupError):
    """Unexpected exception while building the response."""

    def __init__(self, details: str | None = None):
        super().__init__(GENERIC_FAILURE_MESSAGE, details=details)
