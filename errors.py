"""Error kinds raised by the books API.

Startup errors (``ConfigError``, ``DatabaseConnectionError``) end the process.
Request errors carry the HTTP status and the short message sent to the client.
"""


class BooksAPIError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ConfigError(BooksAPIError):
    """Missing or invalid environment configuration."""


class DatabaseConnectionError(BooksAPIError):
    """The database could not be reached or the URL is unusable."""


class BadRequest(BooksAPIError):
    status_code = 400
    message = "Bad Request"


class ServerError(BooksAPIError):
    status_code = 500


class BookNotFound(ServerError):
    # Still answered as 500 so existing clients see the same status
    message = "Query does not exist in Database"
