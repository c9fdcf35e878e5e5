"""Record modelling helpers for objwire."""

from __future__ import annotations

from .base import BaseRecord
from .fields import WireField, WireOptions, wire_field

__all__ = ["BaseRecord", "WireField", "WireOptions", "wire_field"]
