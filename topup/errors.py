"""Errors that map onto client-facing failures."""


class BadRequestError(Exception):
    """The request could not be accepted as given."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(Exception):
    """The requested item does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message