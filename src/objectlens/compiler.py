"""
Setter compilation: turn a Path into a function (root, new_leaf) -> new_root.

The setter is a chain of small closures composed once, from the leaf back to
the root. At invocation each closure reads its child, asks the next closure
for the rebuilt child, and rebuilds its own level:

- member step: reconstruct the owner through its ReconstructionPlan
- index step: replace_at() on the sequence

Objects off the path are never touched, so they keep their identity in the
new root. Setters hold no state beyond the path, the cache and the config
captured at compile time, and may be shared freely between threads.
"""

import logging
import typing
from typing import Any, Callable, Optional

from objectlens.config import LensConfig, get_lens_config
from objectlens.errors import IndexOutOfRangeError, PathNotSupportedError, ReconstructionFailedError
from objectlens.path import MemberStep, Path, parse_path
from objectlens.plan_cache import ReconstructionCache, default_cache
from objectlens.reconstruction import plan_reconstruction, property_type
from objectlens.sequences import element_type, replace_at

logger = logging.getLogger(__name__)

Setter = Callable[[Any, Any], Any]
Getter = Callable[[Any], Any]
_Rebuild = Callable[[Any, Any], Any]


def _replace_leaf(current: Any, new_leaf: Any) -> Any:
    return new_leaf


def _member_rebuilder(name: str, inner: _Rebuild, cache: ReconstructionCache, config: LensConfig) -> _Rebuild:
    short_circuit = config.short_circuit_identical

    def rebuild(current: Any, new_leaf: Any) -> Any:
        try:
            child_old = getattr(current, name)
        except Exception as e:
            raise ReconstructionFailedError(type(current), e, f"reading '{name}'") from e

        child_new = inner(child_old, new_leaf)
        if short_circuit and child_new is child_old:
            return current

        plan = plan_reconstruction(type(current), cache, config)
        return plan.replace(current, name, child_new)

    return rebuild


def _index_rebuilder(index: int, inner: _Rebuild, short_circuit: bool) -> _Rebuild:
    def rebuild(current: Any, new_leaf: Any) -> Any:
        try:
            length = len(current)
        except TypeError as e:
            raise ReconstructionFailedError(type(current), e, f"indexing [{index}]") from e
        if not 0 <= index < length:
            raise IndexOutOfRangeError(index, length)

        child_old = current[index]
        child_new = inner(child_old, new_leaf)
        if short_circuit and child_new is child_old:
            return current

        return replace_at(current, index, child_new)

    return rebuild


def _as_class(annotation: Any) -> Optional[type]:
    if annotation is Any or annotation is object:
        return None
    if isinstance(annotation, type):
        return annotation
    origin = typing.get_origin(annotation)
    return origin if isinstance(origin, type) else None


def _resolve_eagerly(path: Path, root_type: type, cache: ReconstructionCache, config: LensConfig) -> None:
    """Resolve every plan along the path from type annotations.

    Stops quietly (leaving the rest to invocation time) at the first step
    whose type cannot be determined from annotations.
    """
    annotation: Any = root_type
    for position, step in enumerate(path.steps):
        if isinstance(step, MemberStep):
            cls = _as_class(annotation)
            if cls is None:
                break
            plan = plan_reconstruction(cls, cache, config)
            if step.name not in plan.property_names:
                raise PathNotSupportedError(
                    f"'{step.name}' is not a public property of {cls.__qualname__}",
                    str(Path(path.steps[:position])),
                )
            annotation = property_type(cls, step.name)
        else:
            annotation = element_type(annotation, step.index)
        if annotation is None:
            break
    else:
        return
    logger.debug(f"Deferring plan resolution for o{path} after step {position} (type unknown)")


def compile_setter(
    path: Path,
    *,
    root_type: Optional[type] = None,
    cache: Optional[ReconstructionCache] = None,
    config: Optional[LensConfig] = None,
) -> Setter:
    """Compile a Path into a reusable setter.

    Args:
        path: Steps from the root to the leaf
        root_type: When given, plans along the path are resolved now, so
            types that cannot be rebuilt fail here rather than on first use
        cache: Plan cache to use (defaults to the process-wide cache)
        config: Policy switches (defaults to the active LensConfig). Both the
            identity short-circuit and the constructor tie policy are taken
            from it, at compile time

    Returns:
        A function (root, new_leaf) -> new_root that never mutates root.
    """
    if not isinstance(path, Path):
        raise TypeError(f"compile_setter() expects a Path, got {type(path).__name__}")
    if cache is None:
        cache = default_cache
    if config is None:
        config = get_lens_config()

    if root_type is not None:
        _resolve_eagerly(path, root_type, cache, config)

    rebuild: _Rebuild = _replace_leaf
    for step in reversed(path.steps):
        if isinstance(step, MemberStep):
            rebuild = _member_rebuilder(step.name, rebuild, cache, config)
        else:
            rebuild = _index_rebuilder(step.index, rebuild, config.short_circuit_identical)

    def setter(root: Any, new_leaf: Any) -> Any:
        return rebuild(root, new_leaf)

    setter.path = path
    setter.__qualname__ = f'setter(o{path})'
    logger.debug(f"Compiled setter for o{path} ({len(path)} steps)")
    return setter


def create_setter(
    accessor: Callable[[Any], Any],
    *,
    root_type: Optional[type] = None,
    cache: Optional[ReconstructionCache] = None,
    config: Optional[LensConfig] = None,
) -> Setter:
    """Parse an accessor and compile its setter.

    Example:
        set_value = create_setter(lambda o: o.b.c.value, root_type=A)
        new_a = set_value(a, "1")

    Raises:
        PathNotSupportedError: If the accessor is outside the supported grammar.
        NoReconstructionPathError: If root_type is given and a type along the
            path cannot be rebuilt.
    """
    return compile_setter(parse_path(accessor), root_type=root_type, cache=cache, config=config)


def create_getter(accessor: Callable[[Any], Any]) -> Getter:
    """Parse an accessor into a getter that reads the same path."""
    path = parse_path(accessor)

    def getter(root: Any) -> Any:
        return path.get(root)

    getter.path = path
    getter.__qualname__ = f'getter(o{path})'
    return getter


def with_value(root: Any, accessor: Callable[[Any], Any], value: Any, *, cache: Optional[ReconstructionCache] = None) -> Any:
    """Return a copy of root with the leaf selected by accessor set to value.

    One-shot form of create_setter(); the accessor is parsed on every call,
    so index arguments may come from the caller's local variables:

        state = with_value(state, lambda s: s.areas[i].is_selected, True)
    """
    return create_setter(accessor, cache=cache)(root, value)


def modify(root: Any, accessor: Callable[[Any], Any], fn: Callable[[Any], Any], *, cache: Optional[ReconstructionCache] = None) -> Any:
    """Return a copy of root with fn applied to the leaf selected by accessor."""
    path = parse_path(accessor)
    return compile_setter(path, cache=cache)(root, fn(path.get(root)))
