class ScraperError(Exception):
    http_status = 500


class InvalidInputError(ScraperError):
    http_status = 400


class SessionTimeoutError(ScraperError, TimeoutError):
    pass


class ParseError(ScraperError):
    pass


class NotFoundError(ScraperError):
    pass


class InsufficientResultsError(ScraperError):
    pass


class UpstreamError(ScraperError):
    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"received status code {status_code}")
