"""Fetch failures raised by source adapters."""

from __future__ import annotations

HTTP_STATUS_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Too Many Requests",
    500: "Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


class FetchError(Exception):
    """Base class for every adapter failure; str() is the user-facing message."""


class InvalidURLError(FetchError):
    def __init__(self, url: str | None = None) -> None:
        self.url = url
        super().__init__(f"Invalid URL: {url}" if url else "Invalid URL")


class InvalidResponseError(FetchError):
    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(f"Invalid server response: {detail}" if detail else "Invalid server response")


class HTTPStatusError(FetchError):
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        reason = HTTP_STATUS_MESSAGES.get(status_code, "Unknown Error")
        super().__init__(f"HTTP error {status_code}: {reason}")


class DecodingError(FetchError):
    def __init__(self, details: str) -> None:
        self.details = details
        super().__init__(f"Parsing error: {details}")


class APIError(FetchError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"API Error: {message}")


class NoJobsError(FetchError):
    def __init__(self) -> None:
        super().__init__("No jobs found")


class SourceNotImplementedError(FetchError):
    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"{platform} not implemented")


class NetworkError(FetchError):
    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}")
