"""Configuration for RESP parsers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ParserConfig:
    """Limits and buffering of a RESP parser.

    Attributes:
        read_size: Number of bytes requested from the reader when the
            internal buffer runs dry (default 4096)
        max_bulk_length: Largest bulk string accepted, in bytes (default
            512 MiB, the limit of Redis). Also bounds the length of simple
            string, error and integer lines.
        max_array_length: Largest array count accepted (default 2**31 - 1)

    Examples:
        ```python
        from objwire.resp import Parser, ParserConfig

        # Refuse payloads over 1 MiB from untrusted peers
        parser = Parser(sock.makefile("rb"), ParserConfig(max_bulk_length=1 << 20))
        ```
    """

    read_size: int = 4096
    max_bulk_length: int = 512 * 1024 * 1024
    max_array_length: int = 2**31 - 1

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.read_size <= 0:
            raise ValueError(f"read_size must be > 0, got {self.read_size}")

        if self.max_bulk_length < 0:
            raise ValueError(f"max_bulk_length must be >= 0, got {self.max_bulk_length}")

        if self.max_array_length < 0:
            raise ValueError(f"max_array_length must be >= 0, got {self.max_array_length}")
