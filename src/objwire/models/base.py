"""Base record class and objwire-specific Pydantic configuration.

Any pydantic model or dataclass can be serialized; BaseRecord only bundles
the model configuration that works best with decoding (values are coerced
by the decoder first, then validated by pydantic).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseRecord(BaseModel):
    """Base class for pydantic records.

    Example:
        >>> from objwire import WireField
        >>> class Entry(BaseRecord):
        ...     key: str = WireField(name="k")
        ...     ttl: int = WireField(default=0, omitempty=True)
    """

    model_config = ConfigDict(
        # Values coming off the wire are already converted to the field types
        strict=False,
        # Records may hold exceptions, timestamps and other non-JSON types
        arbitrary_types_allowed=True,
        # Validate on assignment
        validate_assignment=True,
        # Accept both the alias and the attribute name when constructing
        populate_by_name=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
    )
