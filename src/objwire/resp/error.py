"""RESP error values."""

from __future__ import annotations


class Error(Exception):
    """Error value carried by a RESP ``-`` line.

    Errors are values of the protocol, not failures of the codec: a server
    replies with ``-ERR unknown command`` and the client decodes it like any
    other reply. Two errors are equal when their messages are equal.

    Example:
        >>> Error("ERR A") == Error("ERR A")
        True
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        """First word of the message, the error kind by convention (``ERR``, ``WRONGTYPE``...)."""
        return self.message.split(" ", 1)[0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Error):
            return NotImplemented
        return self.message == other.message

    def __hash__(self) -> int:
        return hash(self.message)

    def __repr__(self) -> str:
        return f"Error({self.message!r})"

    def __str__(self) -> str:
        return self.message
