"""Error taxonomy shared by the pipeline and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class ImmoWatchError(Exception):
    """Base error; ``status_code`` is the HTTP status the web layer responds with."""

    status_code = 500
    message = "An internal server error occurred."

    def __init__(self, detail: str = "", message: Optional[str] = None) -> None:
        super().__init__(detail or message or self.message)
        self.detail = detail or "Unknown error"
        if message is not None:
            self.message = message


class ValidationError(ImmoWatchError):
    status_code = 400
    message = "Invalid request."


class UpstreamTimeoutError(ImmoWatchError):
    status_code = 504
    message = "Timeout while contacting the listing site."


class UpstreamHTTPError(ImmoWatchError):
    status_code = 502
    message = "The listing site returned an error."

    def __init__(self, status: Optional[int], detail: str = "") -> None:
        super().__init__(detail, message=f"Failed to fetch or parse detail page. Status: {status}")
        if status:
            self.status_code = int(status)


class PersistenceError(ImmoWatchError):
    message = "Database error."


class RenderError(ImmoWatchError):
    message = "Failed to render the listing page."


class MalformedDocumentError(ImmoWatchError):
    message = "Could not parse the page as HTML."


class UnknownError(ImmoWatchError):
    pass
