"""
Reconstruction planning: how to rebuild an immutable instance with one property changed.

For a type, the planner lists its public readable properties and its declared
constructors, keeps the constructors whose parameter names match the
properties one-to-one (case-insensitively), and picks the most accessible of
those. The result is a ReconstructionPlan, memoized per type through a
ReconstructionCache.

What counts as a property:
- dataclass fields
- NamedTuple fields
- property / cached_property descriptors along the MRO
- public names declared in __slots__

What counts as a declared constructor:
- calling the class, when the class (or a base other than object) defines
  __init__ or __new__; always public
- classmethods/staticmethods marked with @constructor; their accessibility
  follows Python naming (_name protected, __name private)

Types that cannot be introspected this way can be described explicitly with
register_type_description().
"""

import enum
import functools
import inspect
import logging
import typing
from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from objectlens.config import LensConfig, get_lens_config
from objectlens.errors import (
    AmbiguousConstructorError,
    NoReconstructionPathError,
    ReconstructionFailedError,
)
from objectlens.plan_cache import ReconstructionCache, default_cache

logger = logging.getLogger(__name__)

_CONSTRUCTOR_MARKER = '__objectlens_constructor__'


class Accessibility(enum.IntEnum):
    """Constructor visibility, ordered from least to most accessible."""
    PRIVATE = 0
    PROTECTED = 1
    PUBLIC = 2

    @classmethod
    def of_name(cls, name: str, owner: Optional[type] = None) -> 'Accessibility':
        """Derive accessibility from a Python attribute name.

        Dunder names are public. Name-mangled names (``_Owner__create`` as
        stored in the class dict, or ``__create`` as written) are private.
        """
        if name.startswith('__') and name.endswith('__'):
            return cls.PUBLIC
        if name.startswith('__'):
            return cls.PRIVATE
        if owner is not None and name.startswith(f"_{owner.__name__.lstrip('_')}__"):
            return cls.PRIVATE
        if name.startswith('_'):
            return cls.PROTECTED
        return cls.PUBLIC


def constructor(func):
    """Mark a classmethod (or staticmethod) as an alternate constructor.

    A plain function is turned into a classmethod::

        class Point:
            @constructor
            def _create(cls, x, y): ...

    Stacking over an explicit @classmethod or @staticmethod also works.
    """
    if isinstance(func, (classmethod, staticmethod)):
        setattr(func.__func__, _CONSTRUCTOR_MARKER, True)
        return func
    if not callable(func):
        raise TypeError(f"@constructor expects a function, got {type(func).__name__}")
    setattr(func, _CONSTRUCTOR_MARKER, True)
    return classmethod(func)


# =============================================================================
# TYPE DESCRIPTION
# =============================================================================

@dataclass(frozen=True)
class ConstructorInfo:
    """A way of creating instances of a type, with its parameter list."""
    name: str
    factory: Callable[..., Any]
    parameters: Tuple[inspect.Parameter, ...]
    accessibility: Accessibility = Accessibility.PUBLIC
    order: int = 0

    @classmethod
    def from_callable(
        cls,
        factory: Callable[..., Any],
        name: Optional[str] = None,
        accessibility: Accessibility = Accessibility.PUBLIC,
        order: int = 0,
    ) -> 'ConstructorInfo':
        """Build a ConstructorInfo from any callable with an introspectable signature."""
        signature = inspect.signature(factory)
        return cls(
            name=name or getattr(factory, '__name__', repr(factory)),
            factory=factory,
            parameters=tuple(signature.parameters.values()),
            accessibility=accessibility,
            order=order,
        )


@dataclass(frozen=True)
class TypeDescription:
    """Capability view of a type: readable properties and declared constructors."""
    properties: Tuple[str, ...]
    constructors: Tuple[ConstructorInfo, ...]


# Explicit per-type descriptions, consulted before introspection
_type_descriptions: Dict[Type, TypeDescription] = {}


def register_type_description(
    type_: type,
    properties: Sequence[str],
    constructors: Sequence[ConstructorInfo],
) -> TypeDescription:
    """Describe a type by hand instead of introspecting it.

    Must happen before the type's plan is first resolved: plans are cached
    for the life of the process.
    """
    description = TypeDescription(tuple(properties), tuple(constructors))
    _type_descriptions[type_] = description
    logger.debug(f"Registered type description for {type_.__qualname__}: properties={description.properties}")
    return description


def _public_properties(cls: type) -> Tuple[str, ...]:
    names: Dict[str, None] = {}

    if is_dataclass(cls):
        for f in fields(cls):
            names[f.name] = None

    if issubclass(cls, tuple) and hasattr(cls, '_fields'):
        for name in cls._fields:
            names[name] = None

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if isinstance(value, property) and value.fget is not None:
                names[name] = None
            elif isinstance(value, functools.cached_property):
                names[name] = None
        slots = vars(klass).get('__slots__', ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            names[name] = None

    return tuple(name for name in names if not name.startswith('_'))


def _defines_class_call(cls: type) -> bool:
    """True if calling the class runs an __init__/__new__ declared below object."""
    for klass in cls.__mro__:
        if klass is object:
            return False
        if '__init__' in vars(klass) or '__new__' in vars(klass):
            return True
    return False


def _declared_constructors(cls: type) -> Tuple[ConstructorInfo, ...]:
    constructors: List[ConstructorInfo] = []
    members = list(vars(cls).items())

    if _defines_class_call(cls):
        keys = [name for name, _ in members]
        if '__init__' in keys:
            order = keys.index('__init__')
        elif '__new__' in keys:
            order = keys.index('__new__')
        else:
            order = -1  # inherited from a base; sorts before own members
        try:
            constructors.append(ConstructorInfo.from_callable(cls, '__init__', Accessibility.PUBLIC, order))
        except (TypeError, ValueError) as e:
            logger.debug(f"Skipping {cls.__qualname__}.__init__: no introspectable signature ({e})")

    for order, (name, value) in enumerate(members):
        if not isinstance(value, (classmethod, staticmethod)):
            continue
        if not getattr(value.__func__, _CONSTRUCTOR_MARKER, False):
            continue
        constructors.append(ConstructorInfo.from_callable(
            getattr(cls, name),
            name,
            Accessibility.of_name(name, cls),
            order,
        ))

    return tuple(constructors)


def describe_type(cls: type) -> TypeDescription:
    """Return the registered description of cls, or introspect one."""
    registered = _type_descriptions.get(cls)
    if registered is not None:
        return registered
    return TypeDescription(_public_properties(cls), _declared_constructors(cls))


# =============================================================================
# PLANS
# =============================================================================

@dataclass(frozen=True)
class ParameterBinding:
    """One constructor parameter and the property that feeds it."""
    parameter: str
    property: str
    positional_only: bool = False


@dataclass(frozen=True)
class ReconstructionPlan:
    """Recipe for rebuilding an instance of `type` with one property replaced."""
    type: type
    constructor: ConstructorInfo
    bindings: Tuple[ParameterBinding, ...]
    # Constructors that matched equally well when the plan was built
    tied: Tuple[str, ...] = ()

    @property
    def property_names(self) -> Tuple[str, ...]:
        return tuple(binding.property for binding in self.bindings)

    def replace(self, instance: Any, name: str, value: Any) -> Any:
        """Return a new instance equal to `instance` except for property `name`.

        Raises:
            NoReconstructionPathError: If `name` is not one of the planned properties.
            ReconstructionFailedError: If a getter or the constructor raises.
        """
        if name not in self.property_names:
            raise NoReconstructionPathError(self.type, f"'{name}' is not one of its public properties")

        args = []
        kwargs = {}
        for binding in self.bindings:
            if binding.property == name:
                argument = value
            else:
                try:
                    argument = getattr(instance, binding.property)
                except Exception as e:
                    raise ReconstructionFailedError(self.type, e, f"reading '{binding.property}'") from e
            if binding.positional_only:
                args.append(argument)
            else:
                kwargs[binding.parameter] = argument

        try:
            return self.constructor.factory(*args, **kwargs)
        except Exception as e:
            raise ReconstructionFailedError(self.type, e, f"calling {self.constructor.name}") from e


def _match_parameters(
    ctor: ConstructorInfo,
    properties: Tuple[str, ...],
) -> Tuple[Optional[Tuple[ParameterBinding, ...]], str]:
    """Bind every parameter to exactly one property, or explain why not."""
    for param in ctor.parameters:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            return None, f"variadic parameter '{param.name}'"

    if len(ctor.parameters) != len(properties):
        return None, f"{len(ctor.parameters)} parameters for {len(properties)} properties"

    by_folded_name = {name.casefold(): name for name in properties}
    if len(by_folded_name) != len(properties):
        return None, "properties differ only by case"

    bindings = []
    used = set()
    for param in ctor.parameters:
        prop = by_folded_name.get(param.name.casefold())
        if prop is None:
            return None, f"parameter '{param.name}' matches no property"
        if prop in used:
            return None, f"property '{prop}' matched twice"
        used.add(prop)
        bindings.append(ParameterBinding(
            parameter=param.name,
            property=prop,
            positional_only=param.kind is inspect.Parameter.POSITIONAL_ONLY,
        ))
    return tuple(bindings), ""


def _build_plan(cls: type, strict_ties: bool) -> ReconstructionPlan:
    description = describe_type(cls)
    if not description.constructors:
        raise NoReconstructionPathError(cls, "it declares no constructors")

    candidates = []
    rejections = []
    for ctor in description.constructors:
        bindings, reason = _match_parameters(ctor, description.properties)
        if bindings is None:
            rejections.append(f"{ctor.name} ({reason})")
            continue
        candidates.append((ctor, bindings))

    if not candidates:
        raise NoReconstructionPathError(cls, '; '.join(rejections))

    best = max(ctor.accessibility for ctor, _ in candidates)
    top = sorted(
        (candidate for candidate in candidates if candidate[0].accessibility == best),
        key=lambda candidate: candidate[0].order,
    )
    tied: Tuple[str, ...] = ()
    if len(top) > 1:
        tied = tuple(ctor.name for ctor, _ in top)
        if strict_ties:
            raise AmbiguousConstructorError(cls, tied)
        logger.warning(
            f"{cls.__qualname__}: constructors {list(tied)} match equally; using first declared '{tied[0]}'"
        )

    ctor, bindings = top[0]
    logger.debug(
        f"Planned {cls.__qualname__} via {ctor.name} ({ctor.accessibility.name.lower()}): "
        f"{[b.parameter for b in bindings]}"
    )
    return ReconstructionPlan(type=cls, constructor=ctor, bindings=bindings, tied=tied)


def plan_reconstruction(
    cls: type,
    cache: Optional[ReconstructionCache] = None,
    config: Optional[LensConfig] = None,
) -> ReconstructionPlan:
    """Return the (cached) reconstruction plan for cls.

    The tie policy of `config` (default: the active LensConfig) applies to
    cached plans as well: a plan that was settled by declaration order is
    refused under strict_constructor_ties.

    Raises:
        NoReconstructionPathError: If no constructor bijectively matches the
            public properties of cls.
        AmbiguousConstructorError: If strict_constructor_ties is set and
            several equally accessible constructors match.
    """
    if not isinstance(cls, type):
        raise TypeError(f"plan_reconstruction() expects a type, got {type(cls).__name__}")
    if cache is None:
        cache = default_cache
    if config is None:
        config = get_lens_config()
    strict = config.strict_constructor_ties
    plan = cache.get_or_compute(cls, lambda: _build_plan(cls, strict))
    if strict and plan.tied:
        raise AmbiguousConstructorError(cls, plan.tied)
    return plan


# =============================================================================
# ANNOTATION WALKING (eager resolution)
# =============================================================================

def property_type(cls: type, name: str) -> Optional[Any]:
    """Return the annotated type of property `name` on cls, or None if unknown."""
    descriptor = inspect.getattr_static(cls, name, None)
    try:
        if isinstance(descriptor, property) and descriptor.fget is not None:
            return typing.get_type_hints(descriptor.fget).get('return')
        if isinstance(descriptor, functools.cached_property):
            return typing.get_type_hints(descriptor.func).get('return')
        return typing.get_type_hints(cls).get(name)
    except Exception as e:
        logger.debug(f"Could not resolve annotation of {cls.__qualname__}.{name}: {e}")
        return None
