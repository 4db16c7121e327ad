"""Errors surfaced by the lottery statistics client. `str(err)` is the display text."""


class LottoStatsError(Exception):
    """Base class; the controller only ever catches this family."""


class InvalidEndpoint(LottoStatsError):
    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid endpoint {url!r}" + (f": {reason}" if reason else ""))


class TransportFailure(LottoStatsError):
    """Connection refused, DNS failure, timeout..."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class ServerError(LottoStatsError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MalformedResponse(LottoStatsError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Malformed response: {detail}")
