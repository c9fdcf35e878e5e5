"""Abstract interface for emitters.

An Emitter receives one call per primitive token of output: a scalar value,
or the begin/next/end framing of a container. Concrete formats implement
this interface; the encoding algorithm in :mod:`objwire.codec.encoder` never
touches wire bytes directly.

Grammar of the calls made by the encoder for containers::

    emit_array_begin(n)  value  (emit_array_next  value)*  emit_array_end()
    emit_map_begin(n)    key emit_map_value value  (emit_map_next key emit_map_value value)*  emit_map_end()

``n`` may be negative when the number of elements is not known upfront.
Formats that need an accurate count are free to reject negative counts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta


class Emitter(ABC):
    """Sink of primitive tokens for a concrete format."""

    #: True when the format has no explicit framing for a stream of values,
    #: meaning that stream encoders emit every value as an independent
    #: top-level message.
    one_shot: bool = False

    def is_text(self) -> bool:
        """Return True if the format is textual.

        Text formats receive the output of ``marshal_text`` as strings,
        binary formats as byte sequences.
        """
        return False

    @abstractmethod
    def emit_nil(self) -> None:
        pass

    @abstractmethod
    def emit_bool(self, v: bool) -> None:
        pass

    @abstractmethod
    def emit_int(self, v: int, bitsize: int = 0) -> None:
        """Emit a signed integer.

        Args:
            v: Integer value
            bitsize: Size of the source integer type in bits, 0 when unsized
        """
        pass

    @abstractmethod
    def emit_uint(self, v: int, bitsize: int = 0) -> None:
        pass

    @abstractmethod
    def emit_float(self, v: float, bitsize: int = 0) -> None:
        pass

    @abstractmethod
    def emit_string(self, v: str) -> None:
        pass

    @abstractmethod
    def emit_bytes(self, v: bytes) -> None:
        pass

    @abstractmethod
    def emit_time(self, v: datetime) -> None:
        pass

    @abstractmethod
    def emit_duration(self, v: timedelta) -> None:
        pass

    @abstractmethod
    def emit_error(self, v: BaseException) -> None:
        pass

    @abstractmethod
    def emit_array_begin(self, n: int) -> None:
        pass

    @abstractmethod
    def emit_array_end(self) -> None:
        pass

    @abstractmethod
    def emit_array_next(self) -> None:
        pass

    @abstractmethod
    def emit_map_begin(self, n: int) -> None:
        pass

    @abstractmethod
    def emit_map_end(self) -> None:
        pass

    @abstractmethod
    def emit_map_value(self) -> None:
        """Mark the end of a key: the associated value follows."""
        pass

    @abstractmethod
    def emit_map_next(self) -> None:
        pass
