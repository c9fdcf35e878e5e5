"""Schema introspection for records.

This module analyzes record classes (dataclasses and pydantic models) and
extracts the ordered list of field descriptors used by the encoder and the
decoder. Descriptor lists are built once per record type and kept in a
:class:`StructCache`.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Sized
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple, get_type_hints

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..exceptions import SchemaError, TypeConversionError
from ..kinds import Kind, is_record_type
from ..models.fields import WireOptions
from .hints import optional_argument

if TYPE_CHECKING:
    from .decoder import Decoder
    from .encoder import Encoder

logger = logging.getLogger(__name__)

#: Returned by FieldDescriptor.get when an embedded record on the access
#: path is None; such fields are not emitted.
MISSING = object()


def is_empty(value: Any) -> bool:
    """Return True if ``value`` is the zero value of its kind.

    Zero values are None, numeric zeros, False, empty strings, byte
    sequences and containers, and a zero duration. Records, timestamps and
    errors are never empty.
    """
    if value is None:
        return True
    if isinstance(value, (bool, int, float, complex)):
        return value == 0
    if isinstance(value, timedelta):
        return value == timedelta(0)
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return len(value) == 0
    if is_record_type(type(value)) or isinstance(value, BaseException):
        return False
    if isinstance(value, Sized):
        return len(value) == 0
    return False


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """Schema information for a single serialized field.

    Attributes:
        name: Wire name
        path: Attribute names leading from the outer record to the field;
            longer than one for fields flattened from embedded records
        init_key: Keyword used to pass the field to its record's constructor,
            None if the field cannot be set through the constructor
        omitempty: Whether the field is skipped when empty
        hint: Resolved type hint of the field, used as the decode target
    """

    name: str
    path: Tuple[str, ...]
    init_key: Optional[str]
    omitempty: bool
    hint: Any

    def get(self, record: Any) -> Any:
        """Follow the access path on ``record``."""
        value = record
        for attr in self.path:
            if value is None:
                return MISSING
            value = getattr(value, attr)
        return value

    def omit(self, value: Any) -> bool:
        if value is MISSING:
            return True
        return self.omitempty and is_empty(value)

    def encode(self, encoder: Encoder, value: Any) -> None:
        encoder.encode_value(value)

    def decode(self, decoder: Decoder) -> Any:
        return decoder.decode_value(self.hint)


@dataclasses.dataclass(frozen=True)
class _Member:
    attr: str
    init_key: Optional[str]
    has_default: bool
    descriptor: Optional[FieldDescriptor] = None
    embedded: Optional["RecordSchema"] = None


class RecordSchema:
    """Schema information for an entire record type.

    The ``fields`` tuple is in declaration order, with the fields of
    embedded records spliced in at the position of the embedding field.
    It is the order in which fields are emitted.

    Example:
        >>> schema = RecordSchema.from_type(Entry)
        >>> [field.name for field in schema.fields]
        ['k', 'ttl']
    """

    def __init__(self, record_type: type, members: List[_Member]) -> None:
        self.record_type = record_type
        self._members = tuple(members)
        self.fields: Tuple[FieldDescriptor, ...] = tuple(self._flatten())
        self.by_name: Dict[str, FieldDescriptor] = {}
        for field in self.fields:
            if field.name in self.by_name:
                raise SchemaError(
                    f"{record_type.__name__}: duplicate wire name {field.name!r} "
                    f"(fields {'.'.join(self.by_name[field.name].path)} and {'.'.join(field.path)})"
                )
            self.by_name[field.name] = field

    @classmethod
    def from_type(cls, record_type: type) -> RecordSchema:
        """Introspect a record class.

        Raises:
            SchemaError: If the class is not a record or its declaration is invalid
        """
        return cls._build(record_type, (), frozenset())

    @classmethod
    def _build(cls, record_type: type, prefix: Tuple[str, ...], seen: frozenset) -> RecordSchema:
        if not is_record_type(record_type):
            raise SchemaError(f"{record_type!r} is not a dataclass or pydantic model")
        if record_type in seen:
            raise SchemaError(f"{record_type.__name__} embeds itself")
        seen = seen | {record_type}

        members: List[_Member] = []
        for attr, init_key, has_default, hint, options in _introspect(record_type):
            if options.skip or attr.startswith("_"):
                continue
            path = prefix + (attr,)
            if options.embed:
                target = _strip_optional(hint)
                if not is_record_type(target):
                    raise SchemaError(
                        f"{record_type.__name__}.{attr}: embed=True requires a record type, got {hint!r}"
                    )
                embedded = cls._build(target, path, seen)
                members.append(_Member(attr, init_key, has_default, embedded=embedded))
                continue
            descriptor = FieldDescriptor(
                name=options.name or attr,
                path=path,
                init_key=init_key,
                omitempty=options.omitempty,
                hint=hint,
            )
            members.append(_Member(attr, init_key, has_default, descriptor=descriptor))
        return cls(record_type, members)

    def _flatten(self) -> Iterable[FieldDescriptor]:
        for member in self._members:
            if member.embedded is not None:
                yield from member.embedded.fields
            elif member.descriptor is not None:
                yield member.descriptor

    def build(self, values: Dict[str, Any]) -> Any:
        """Construct an instance of the record from decoded values.

        Args:
            values: Decoded values keyed by attribute name; values of
                embedded records are nested dicts keyed the same way

        Raises:
            TypeConversionError: If the record cannot be constructed
        """
        kwargs: Dict[str, Any] = {}
        for member in self._members:
            if member.init_key is None:
                continue
            if member.embedded is not None:
                if member.attr in values:
                    kwargs[member.init_key] = member.embedded.build(values[member.attr])
                elif not member.has_default:
                    kwargs[member.init_key] = member.embedded.build({})
            elif member.attr in values:
                kwargs[member.init_key] = values[member.attr]
        try:
            return self.record_type(**kwargs)
        except (TypeError, ValueError) as err:
            # pydantic.ValidationError is a ValueError
            raise TypeConversionError(Kind.MAP, self.record_type, str(err)) from err


class StructCache:
    """Thread-safe cache of record schemas, keyed by record type.

    Lookups are lock-free once a schema is built. The first lookup of a type
    builds its schema under a lock and publishes it by swapping in a new
    dict, so concurrent readers never observe a partially updated cache and
    a type is never built twice.
    """

    def __init__(self) -> None:
        self._schemas: Dict[type, RecordSchema] = {}
        self._lock = threading.Lock()

    def lookup(self, record_type: type) -> RecordSchema:
        schema = self._schemas.get(record_type)
        if schema is not None:
            return schema

        with self._lock:
            schema = self._schemas.get(record_type)
            if schema is None:
                schema = RecordSchema.from_type(record_type)
                schemas = dict(self._schemas)
                schemas[record_type] = schema
                self._schemas = schemas
                logger.debug(
                    "built schema for %s with %d fields", record_type.__qualname__, len(schema.fields)
                )
        return schema

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def clear(self) -> None:
        with self._lock:
            self._schemas = {}


def _introspect(record_type: type) -> Iterable[Tuple[str, Optional[str], bool, Any, WireOptions]]:
    """Yield (attr, init_key, has_default, hint, options) for each declared field."""
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        for attr, info in record_type.model_fields.items():
            if info.exclude:
                continue
            options = _pydantic_options(info)
            hint = info.annotation if info.annotation is not None else Any
            yield attr, info.alias or attr, not info.is_required(), hint, options
        return

    try:
        hints = get_type_hints(record_type)
    except Exception as err:
        raise SchemaError(f"{record_type.__name__}: cannot resolve type hints: {err}") from err

    for field in dataclasses.fields(record_type):
        options = WireOptions.from_mapping(field.metadata)
        has_default = (
            field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING
        )
        yield (
            field.name,
            field.name if field.init else None,
            has_default,
            hints.get(field.name, Any),
            options,
        )


def _pydantic_options(info: FieldInfo) -> WireOptions:
    options = WireOptions.from_mapping(info.json_schema_extra)
    if options.name is None and info.alias:
        options = dataclasses.replace(options, name=info.alias)
    return options


def _strip_optional(hint: Any) -> Any:
    inner = optional_argument(hint)
    return hint if inner is None else inner
