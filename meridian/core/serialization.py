"""Meridian – JSON serialization helpers.

Engine outputs are frozen dataclasses holding enums, datetimes, numpy
arrays and mappings keyed by enums. :func:`to_jsonable` dumps them in
pydantic's JSON mode so that callers can hand reports to any transport
without knowing the internal types.

Array-valued fields are annotated with :data:`NdArray`, which
serializes to (nested) lists. Fields annotated with
``Field(exclude=True)`` are skipped; this keeps bulky internals (for
example the full list of simulated paths) out of serialized payloads.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any

import numpy as np
from pydantic import GetCoreSchemaHandler, TypeAdapter
from pydantic_core import core_schema


def _as_array(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float)


def _array_to_list(value: np.ndarray) -> list:
    return np.asarray(value).tolist()


class _NdArrayAnnotation:
    """Core schema for ``numpy.ndarray`` fields."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            _as_array,
            serialization=core_schema.plain_serializer_function_ser_schema(_array_to_list),
        )


NdArray = Annotated[np.ndarray, _NdArrayAnnotation]


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def to_jsonable(obj: Any) -> Any:
    """Convert ``obj`` into JSON-compatible Python values.

    Raises:
        pydantic_core.PydanticSerializationError: If ``obj`` holds a
            value pydantic cannot serialize.
    """

    return _adapter(type(obj)).dump_python(obj, mode="json")
