"""Exception hierarchy for objwire.

This module defines all custom exceptions used throughout the package.
All errors inherit from ObjwireError for easy catching of any objwire-specific error.

The two control signals, End and Shadow, are deliberately *not* part of the
error hierarchy: they are consumed by the traversal loops and are only seen
by callers that drive the streaming protocol themselves.
"""

from __future__ import annotations


class ObjwireError(Exception):
    """Base exception for all objwire errors."""

    pass


class TypeConversionError(ObjwireError, TypeError):
    """Raised when a decoded value cannot be stored in the requested target.

    Examples:
        - Nil decoded into a non-nullable scalar (``int``, ``str``...)
        - Map decoded into a list target
        - Text that does not parse as the requested number or timestamp
    """

    def __init__(self, source: object, target: object, detail: str = "") -> None:
        self.source = source
        self.target = target
        message = f"objwire: cannot convert from {_describe(source)} to {_describe(target)}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnsupportedTypeError(ObjwireError, TypeError):
    """Raised when a value has no Kind the engine knows how to serialize.

    Examples:
        - Functions, modules, classes
        - Arbitrary objects without a registered adapter or capability
    """

    def __init__(self, value_type: object) -> None:
        self.value_type = value_type
        super().__init__(f"objwire: the encoder doesn't support values of type {_describe(value_type)}")


class ProtocolError(ObjwireError):
    """Raised when a wire format is malformed or cannot express a value.

    Examples:
        - Malformed length prefix
        - Premature end of input
        - Missing CRLF terminator
        - Value that the format has no encoding for

    After a ProtocolError the position of the underlying stream is
    indeterminate.
    """

    pass


class CapacityError(ObjwireError):
    """Raised when a stream receives more values than it was opened with."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"objwire: too many values sent to a stream encoder exceed the configured limit of {limit}"
        )


class StreamClosedError(ObjwireError):
    """Raised when writing to a stream encoder that was already closed."""

    pass


class SchemaError(ObjwireError):
    """Raised when a record declaration cannot be turned into field descriptors.

    Examples:
        - Two fields share the same wire name
        - ``embed=True`` on a field whose type is not a record
    """

    pass


class UnknownCodecError(ObjwireError, KeyError):
    """Raised when looking up a codec name that was never registered."""

    def __str__(self) -> str:
        return f"objwire: no codec registered under {self.args[0]!r}"


class End(Exception):
    """Signals that a sequence is exhausted.

    Producer callbacks raise it to truncate an array or map early, parsers
    raise it from ``parse_array_next`` / ``parse_map_next`` when an array of
    unknown length has no more elements, and stream decoders raise it when
    the current frame has no more values.
    """

    pass


class Shadow(Exception):
    """Signals that a parse completed but unconsumed bytes remain buffered."""

    def __init__(self, remaining: int) -> None:
        self.remaining = remaining
        super().__init__(f"objwire: {remaining} bytes left in the buffer after the last value")


def _describe(obj: object) -> str:
    if isinstance(obj, type):
        return obj.__name__
    return str(obj)
