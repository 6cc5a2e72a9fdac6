"""
Lens compiler for immutable object graphs.

Turns a read path into a nested, constructor-only object model into a write
operation: a setter that returns a new root with exactly one leaf replaced,
while every branch off the path keeps its identity.

Key Features:
- Accessor parsing: ``lambda o: o.b.items[1].value`` becomes a Path
- Constructor discovery: rebuild records through a constructor whose
  parameters match the public properties one-to-one
- Sequence steps: replace one element of a tuple (or other sequence)
  without touching the rest
- Plans cached per type, setters safe to share between threads

Quick Start:
    >>> from dataclasses import dataclass
    >>> from objectlens import create_setter
    >>>
    >>> @dataclass(frozen=True)
    ... class Point:
    ...     x: int
    ...     y: int
    >>>
    >>> @dataclass(frozen=True)
    ... class Segment:
    ...     start: Point
    ...     end: Point
    >>>
    >>> set_start_x = create_setter(lambda s: s.start.x, root_type=Segment)
    >>> seg = Segment(Point(0, 0), Point(1, 1))
    >>> moved = set_start_x(seg, 5)
    >>> moved.start.x, moved.end is seg.end
    (5, True)

Modules:
    - path: Path/Step data and accessor parsing
    - reconstruction: Type description and constructor selection
    - plan_cache: Thread-safe per-type plan cache
    - sequences: Replace-at-index for ordered sequences
    - compiler: Setter/getter compilation and one-shot helpers
    - config: Framework configuration (tie policy, short-circuiting)
    - errors: Exception hierarchy
"""

# Errors
from objectlens.errors import (
    LensError,
    PathNotSupportedError,
    NoReconstructionPathError,
    AmbiguousConstructorError,
    IndexOutOfRangeError,
    ReconstructionFailedError,
)

# Configuration
from objectlens.config import (
    LensConfig,
    get_lens_config,
    set_lens_config,
    reset_lens_config,
    lens_config,
)

# Paths
from objectlens.path import Path, MemberStep, IndexStep, Step, parse_path

# Plans
from objectlens.plan_cache import ReconstructionCache, default_cache
from objectlens.reconstruction import (
    Accessibility,
    ConstructorInfo,
    ParameterBinding,
    ReconstructionPlan,
    TypeDescription,
    constructor,
    describe_type,
    plan_reconstruction,
    register_type_description,
)

# Sequences
from objectlens.sequences import replace_at, register_sequence_builder

# Compiler
from objectlens.compiler import (
    compile_setter,
    create_setter,
    create_getter,
    with_value,
    modify,
)

__all__ = [
    # Errors
    'LensError',
    'PathNotSupportedError',
    'NoReconstructionPathError',
    'AmbiguousConstructorError',
    'IndexOutOfRangeError',
    'ReconstructionFailedError',
    # Configuration
    'LensConfig',
    'get_lens_config',
    'set_lens_config',
    'reset_lens_config',
    'lens_config',
    # Paths
    'Path',
    'MemberStep',
    'IndexStep',
    'Step',
    'parse_path',
    # Plans
    'ReconstructionCache',
    'default_cache',
    'Accessibility',
    'ConstructorInfo',
    'ParameterBinding',
    'ReconstructionPlan',
    'TypeDescription',
    'constructor',
    'describe_type',
    'plan_reconstruction',
    'register_type_description',
    # Sequences
    'replace_at',
    'register_sequence_builder',
    # Compiler
    'compile_setter',
    'create_setter',
    'create_getter',
    'with_value',
    'modify',
]

__version__ = '1.0.0'
__description__ = 'Lens compiler for immutable object graphs'
