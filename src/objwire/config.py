"""Configuration for encoders and decoders.

Configurations are plain dataclasses passed explicitly to sessions. A
session never reads process-wide settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .adapters import AdapterRegistry
from .codec.schema import StructCache


@dataclass
class EncoderConfig:
    """Configuration of an encoding session.

    Attributes:
        sort_keys: Emit map keys (and set elements) in their natural order,
            producing reproducible output for identical contents
        cache: Record schema cache; a config built without one owns a new
            cache, pass the same cache to several configs to share it
        adapters: Explicit per-type adapters, None for no adapters

    Examples:
        ```python
        from objwire import Encoder, EncoderConfig
        from objwire.resp import Emitter

        encoder = Encoder(Emitter(stream), EncoderConfig(sort_keys=True))
        ```
    """

    sort_keys: bool = False
    cache: Optional[StructCache] = None
    adapters: Optional[AdapterRegistry] = None

    def __post_init__(self) -> None:
        if self.cache is None:
            self.cache = StructCache()


@dataclass
class DecoderConfig:
    """Configuration of a decoding session.

    Attributes:
        cache: Record schema cache; a config built without one owns a new
            cache, pass the same cache to several configs to share it
        adapters: Explicit per-type adapters, None for no adapters
    """

    cache: Optional[StructCache] = None
    adapters: Optional[AdapterRegistry] = None

    def __post_init__(self) -> None:
        if self.cache is None:
            self.cache = StructCache()
