"""Abstract interface for parsers.

A Parser yields one primitive token per call. ``parse_type`` only peeks at
the next token; every other method consumes exactly one token.

For containers of unknown length (``parse_array_begin`` or
``parse_map_begin`` returned a negative count) the decoder calls
``parse_array_next(i)`` / ``parse_map_next(i)`` before every element,
including the first, and the parser raises :class:`objwire.exceptions.End`
once the container is exhausted. For containers of known length these
methods are only called between elements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from .kinds import Kind


class Parser(ABC):
    """Source of primitive tokens for a concrete format."""

    @abstractmethod
    def parse_type(self) -> Kind:
        """Return the Kind of the next token without consuming it."""
        pass

    @abstractmethod
    def parse_nil(self) -> None:
        pass

    @abstractmethod
    def parse_bool(self) -> bool:
        pass

    @abstractmethod
    def parse_int(self) -> int:
        pass

    @abstractmethod
    def parse_uint(self) -> int:
        pass

    @abstractmethod
    def parse_float(self) -> float:
        pass

    @abstractmethod
    def parse_string(self) -> str:
        pass

    @abstractmethod
    def parse_bytes(self) -> bytes:
        pass

    @abstractmethod
    def parse_time(self) -> datetime:
        pass

    @abstractmethod
    def parse_duration(self) -> timedelta:
        pass

    @abstractmethod
    def parse_error(self) -> BaseException:
        pass

    @abstractmethod
    def parse_array_begin(self) -> int:
        """Consume the beginning of an array and return its length (< 0 if unknown)."""
        pass

    @abstractmethod
    def parse_array_end(self, n: int) -> None:
        pass

    @abstractmethod
    def parse_array_next(self, n: int) -> None:
        pass

    @abstractmethod
    def parse_map_begin(self) -> int:
        pass

    @abstractmethod
    def parse_map_end(self, n: int) -> None:
        pass

    @abstractmethod
    def parse_map_value(self) -> None:
        pass

    @abstractmethod
    def parse_map_next(self, n: int) -> None:
        pass
