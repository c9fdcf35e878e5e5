"""Field helpers for declaring wire options on records.

Records are plain dataclasses or pydantic models. The helpers in this module
attach objwire options to a field without changing how the field behaves
otherwise:

- ``name``: wire name of the field (defaults to the attribute name)
- ``omitempty``: do not emit the field when its value is empty
- ``skip``: never serialize the field
- ``embed``: flatten the fields of a nested record into the parent
"""

from __future__ import annotations

import dataclasses
from typing import Any, cast

from pydantic import Field
from pydantic.fields import FieldInfo

OPTIONS_KEY = "objwire"


@dataclasses.dataclass(frozen=True)
class WireOptions:
    """Wire options of a single record field."""

    name: str | None = None
    omitempty: bool = False
    skip: bool = False
    embed: bool = False

    @classmethod
    def from_mapping(cls, data: Any) -> WireOptions:
        """Read options stored by :func:`WireField` or :func:`wire_field`."""
        if not data:
            return cls()
        options = data.get(OPTIONS_KEY) if hasattr(data, "get") else None
        if not options:
            return cls()
        return cls(
            name=options.get("name"),
            omitempty=bool(options.get("omitempty", False)),
            skip=bool(options.get("skip", False)),
            embed=bool(options.get("embed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "omitempty": self.omitempty,
            "skip": self.skip,
            "embed": self.embed,
        }


def WireField(
    *,
    name: str | None = None,
    omitempty: bool = False,
    skip: bool = False,
    embed: bool = False,
    **kwargs: Any,
) -> FieldInfo:
    """Create a pydantic field carrying objwire options.

    The options are stored in ``json_schema_extra`` so they travel with the
    model's FieldInfo.

    Args:
        name: Wire name (defaults to the field's alias, then its name)
        omitempty: Skip the field when its value is empty
        skip: Never serialize the field
        embed: Flatten a nested record's fields into the parent
        **kwargs: Additional Field() arguments (default, description, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default.

    Example:
        >>> class Command(BaseRecord):
        ...     name: str = WireField(name="cmd")
        ...     ttl: int = WireField(default=0, omitempty=True)
    """
    extra = kwargs.pop("json_schema_extra", None) or {}
    extra = dict(extra)
    extra[OPTIONS_KEY] = WireOptions(name, omitempty, skip, embed).to_dict()
    return cast(FieldInfo, Field(json_schema_extra=extra, **kwargs))


def wire_field(
    *,
    name: str | None = None,
    omitempty: bool = False,
    skip: bool = False,
    embed: bool = False,
    **kwargs: Any,
) -> Any:
    """Create a dataclass field carrying objwire options.

    Same options as :func:`WireField`, stored in the field's ``metadata``.

    Example:
        >>> @dataclass
        ... class Entry:
        ...     key: str = wire_field(name="k")
        ...     note: str = wire_field(default="", omitempty=True)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[OPTIONS_KEY] = WireOptions(name, omitempty, skip, embed).to_dict()
    return dataclasses.field(metadata=metadata, **kwargs)
