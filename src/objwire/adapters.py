"""Explicit per-type encoding adapters.

Adapters teach the engine to serialize types it does not own (types from
the standard library or third-party packages) without modifying them.
An :class:`AdapterRegistry` is populated explicitly and handed to encoders
and decoders through their configuration.

Example:
    >>> import uuid
    >>> adapters = AdapterRegistry()
    >>> adapters.register(
    ...     uuid.UUID,
    ...     encode=lambda e, v: e.encode_string(str(v)),
    ...     decode=lambda d: uuid.UUID(d.decode(str)),
    ... )
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

if TYPE_CHECKING:
    from .codec.decoder import Decoder
    from .codec.encoder import Encoder

EncodeFunc = Callable[["Encoder", Any], None]
DecodeFunc = Callable[["Decoder"], Any]


@dataclass(frozen=True)
class Adapter:
    """Encode and decode routines for one type.

    Attributes:
        encode: Called with the encoder and the value to encode
        decode: Called with the decoder, returns the decoded value
    """

    encode: Optional[EncodeFunc] = None
    decode: Optional[DecodeFunc] = None


class AdapterRegistry:
    """Mapping of types to adapters, resolved along the MRO."""

    def __init__(self) -> None:
        self._adapters: Dict[type, Adapter] = {}
        self._lock = threading.Lock()

    def register(
        self,
        tp: type,
        *,
        encode: Optional[EncodeFunc] = None,
        decode: Optional[DecodeFunc] = None,
    ) -> None:
        """Install an adapter for ``tp`` and its subclasses.

        Raises:
            ValueError: If neither ``encode`` nor ``decode`` is given
        """
        if encode is None and decode is None:
            raise ValueError(f"adapter for {tp.__name__} needs an encode or decode function")
        with self._lock:
            adapters = dict(self._adapters)
            adapters[tp] = Adapter(encode=encode, decode=decode)
            self._adapters = adapters

    def lookup(self, tp: Any) -> Optional[Adapter]:
        if not self._adapters:
            return None
        for base in getattr(tp, "__mro__", ()):
            adapter = self._adapters.get(base)
            if adapter is not None:
                return adapter
        return None

    def __contains__(self, tp: object) -> bool:
        return self.lookup(tp) is not None

    def __len__(self) -> int:
        return len(self._adapters)
