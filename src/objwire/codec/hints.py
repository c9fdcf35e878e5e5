"""Helpers for inspecting decode target type hints."""

from __future__ import annotations

import types
from typing import Any, Optional, Tuple, Union, get_args, get_origin

NoneType = type(None)


def is_union(hint: Any) -> bool:
    origin = get_origin(hint)
    return origin is Union or origin is types.UnionType


def optional_argument(hint: Any) -> Optional[Any]:
    """Return ``T`` for ``Optional[T]`` / ``T | None``, None for any other hint.

    ``Optional[A | B]`` returns ``A | B``.
    """
    if not is_union(hint):
        return None
    args = get_args(hint)
    if NoneType not in args:
        return None
    others = tuple(arg for arg in args if arg is not NoneType)
    if len(others) == 1:
        return others[0]
    return Union[others]  # type: ignore[return-value]


def split(hint: Any) -> Tuple[Any, Tuple[Any, ...]]:
    """Return (origin, args) of a hint, using the hint itself as origin when unparameterized."""
    origin = get_origin(hint)
    if origin is None:
        return hint, ()
    return origin, get_args(hint)
