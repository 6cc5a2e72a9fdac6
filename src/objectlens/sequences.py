"""
Replace-at-index for ordered, read-only sequences.

replace_at() returns a new container of the same concrete type with one
element swapped; every other element is carried over as the same object.
How a container is rebuilt from its elements is looked up per type:

1. a builder registered with register_sequence_builder() (MRO-aware)
2. NamedTuple-style ``_make(iterable)``
3. the type's own constructor called with one iterable (tuple, list,
   most user-defined immutable sequences)
"""

import collections.abc
import logging
import operator
import typing
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from objectlens.errors import IndexOutOfRangeError, ReconstructionFailedError

logger = logging.getLogger(__name__)

SequenceBuilder = Callable[[Sequence, List[Any]], Sequence]

# Text and binary types are sequences of characters/bytes, not element containers
_NOT_CONTAINERS = (str, bytes, bytearray, memoryview, range)

_sequence_builders: Dict[Type, SequenceBuilder] = {}


def register_sequence_builder(sequence_type: type, builder: SequenceBuilder) -> None:
    """Register how to rebuild `sequence_type` (and subclasses) from elements.

    Args:
        sequence_type: The concrete container type
        builder: Called as builder(original, elements) and must return a new
            container of the same type as `original` holding `elements`
    """
    _sequence_builders[sequence_type] = builder
    logger.debug(f"Registered sequence builder for {sequence_type.__qualname__}")


def _construct_from_iterable(original: Sequence, elements: List[Any]) -> Sequence:
    return type(original)(elements)


def _make_from_iterable(original: Sequence, elements: List[Any]) -> Sequence:
    return type(original)._make(elements)


def _builder_for(sequence_type: type) -> SequenceBuilder:
    for klass in sequence_type.__mro__:
        builder = _sequence_builders.get(klass)
        if builder is not None:
            return builder
    if issubclass(sequence_type, tuple) and hasattr(sequence_type, '_make'):
        return _make_from_iterable
    return _construct_from_iterable


def replace_at(sequence: Sequence, index: int, new_element: Any) -> Sequence:
    """Return a copy of `sequence` with the element at `index` replaced.

    The input is never modified.

    Raises:
        IndexOutOfRangeError: If index is outside 0 <= index < len(sequence).
        ReconstructionFailedError: If `sequence` is not an element container
            or its type cannot be rebuilt from a list of elements.
    """
    sequence_type = type(sequence)
    if isinstance(sequence, _NOT_CONTAINERS) or not isinstance(sequence, collections.abc.Sequence):
        raise ReconstructionFailedError(
            sequence_type, TypeError(f"{sequence_type.__qualname__} is not an ordered element container")
        )

    index = operator.index(index)
    length = len(sequence)
    if not 0 <= index < length:
        raise IndexOutOfRangeError(index, length)

    elements = list(sequence)
    elements[index] = new_element

    try:
        rebuilt = _builder_for(sequence_type)(sequence, elements)
    except Exception as e:
        raise ReconstructionFailedError(sequence_type, e, "rebuilding from elements") from e

    if type(rebuilt) is not sequence_type:
        raise ReconstructionFailedError(
            sequence_type,
            TypeError(f"builder returned {type(rebuilt).__qualname__}"),
            "rebuilding from elements",
        )
    return rebuilt


def element_type(annotation: Any, index: int) -> Optional[Any]:
    """Element annotation of a sequence annotation at `index`, or None if unknown.

    Examples:
        element_type(tuple[Area, ...], 3)   # Area
        element_type(tuple[str, int], 1)    # int
        element_type(Sequence[Area], 0)     # Area
    """
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is None or not args or not isinstance(origin, type):
        return None
    if not issubclass(origin, collections.abc.Sequence) or issubclass(origin, _NOT_CONTAINERS):
        return None
    if issubclass(origin, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        if args == ((),):
            return None
        return args[index] if index < len(args) else None
    return args[0]
