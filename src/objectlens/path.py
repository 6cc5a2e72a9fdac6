"""
Accessor paths: the member/index steps leading from a root object to a leaf.

A Path is built either from an accessor callable (parse_path) or directly
through the builder API:

    parse_path(lambda o: o.b.c_list[1].value)
    Path().attr('b').attr('c_list').at(1).attr('value')

Both produce the same immutable data. parse_path calls the accessor once with
a recording proxy. Attribute access and integer indexing extend the recorded
path; every other operation on a root-derived value (calls, truth tests,
conversions, operators, hashing) raises PathNotSupportedError. Conditions
like `o.b is None` never reach the proxy, so the accessor's bytecode is
scanned first and any conditional branch in it is rejected. Index
arguments are ordinary Python values by the time they reach the proxy, so
closure variables are evaluated exactly once, here.
"""

import dis
import inspect
import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Tuple, Union

from objectlens.errors import IndexOutOfRangeError, PathNotSupportedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemberStep:
    """Read a named public, read-only property."""
    name: str

    def __str__(self) -> str:
        return f'.{self.name}'


@dataclass(frozen=True)
class IndexStep:
    """Read one element of an ordered sequence at a frozen, non-negative index."""
    index: int

    def __str__(self) -> str:
        return f'[{self.index}]'


Step = Union[MemberStep, IndexStep]


def _check_member_name(name: Any, path: str = '') -> str:
    if not isinstance(name, str) or not name.isidentifier():
        raise PathNotSupportedError(f"attribute name {name!r} is not an identifier", path)
    if name.startswith('_'):
        raise PathNotSupportedError(f"access to non-public attribute '{name}'", path)
    return name


def _check_index(index: Any, path: str = '') -> int:
    if isinstance(index, _PathRecorder):
        raise PathNotSupportedError(f"index '{index._render()}' depends on the accessor parameter", path)
    if isinstance(index, bool):
        raise PathNotSupportedError(f"boolean index {index!r}", path)
    if isinstance(index, tuple):
        raise PathNotSupportedError(f"multi-argument indexer [{', '.join(map(repr, index))}]", path)
    if isinstance(index, slice):
        raise PathNotSupportedError("slice indexer", path)
    try:
        value = operator.index(index)
    except TypeError:
        raise PathNotSupportedError(f"non-integer index {index!r}", path) from None
    if value < 0:
        raise PathNotSupportedError(f"negative index {value}", path)
    return value


@dataclass(frozen=True)
class Path:
    """Immutable sequence of steps from a root object to a leaf value."""
    steps: Tuple[Step, ...] = ()

    def attr(self, name: str) -> 'Path':
        """Return a new path extended by a member step."""
        return Path(self.steps + (MemberStep(_check_member_name(name, str(self))),))

    def at(self, index: int) -> 'Path':
        """Return a new path extended by an index step."""
        return Path(self.steps + (IndexStep(_check_index(index, str(self))),))

    def get(self, root: Any) -> Any:
        """Walk the path from root and return the leaf value."""
        current = root
        for step in self.steps:
            if isinstance(step, MemberStep):
                current = getattr(current, step.name)
            else:
                if not 0 <= step.index < len(current):
                    raise IndexOutOfRangeError(step.index, len(current))
                current = current[step.index]
        return current

    @classmethod
    def of(cls, accessor: Callable[[Any], Any]) -> 'Path':
        """Alias for parse_path()."""
        return parse_path(accessor)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __str__(self) -> str:
        return ''.join(str(step) for step in self.steps)


# =============================================================================
# RECORDING PROXY
# =============================================================================

class _PathRecorder:
    """Stand-in for the accessor parameter that records the steps taken on it.

    Read-only like a field proxy: attribute assignment is rejected, and so is
    anything that would make the accessor's result depend on the root's data.
    """

    __slots__ = ('_steps',)

    def __init__(self, steps: Tuple[Step, ...]):
        object.__setattr__(self, '_steps', steps)

    def _render(self) -> str:
        return 'o' + ''.join(str(step) for step in self._steps)

    def _reject(self, construct: str):
        raise PathNotSupportedError(construct, self._render())

    def __getattr__(self, name: str) -> '_PathRecorder':
        _check_member_name(name, self._render())
        return _PathRecorder(self._steps + (MemberStep(name),))

    def __getitem__(self, key: Any) -> '_PathRecorder':
        index = _check_index(key, self._render())
        return _PathRecorder(self._steps + (IndexStep(index),))

    def __setattr__(self, name: str, value: Any) -> None:
        self._reject(f"assignment to '{name}'")

    def __delattr__(self, name: str) -> None:
        self._reject(f"deletion of '{name}'")

    def __setitem__(self, key: Any, value: Any) -> None:
        self._reject("item assignment")

    def __delitem__(self, key: Any) -> None:
        self._reject("item deletion")

    def __call__(self, *args, **kwargs):
        self._reject("method call")

    def __bool__(self) -> bool:
        self._reject("conditional branch on a value read from the accessor parameter")

    def __index__(self) -> int:
        self._reject("value read from the accessor parameter used as an index")

    def __len__(self) -> int:
        self._reject("len()")

    def __iter__(self):
        self._reject("iteration")

    def __contains__(self, item: Any) -> bool:
        self._reject("membership test")

    def __hash__(self) -> int:
        self._reject("hashing")

    def __str__(self) -> str:
        self._reject("conversion to str")

    def __format__(self, format_spec: str) -> str:
        self._reject("string formatting")

    def __repr__(self) -> str:
        return f'<path {self._render()}>'

    @property
    def __class__(self):
        # isinstance() falls back to __class__ when the type check fails
        self._reject("type test on a value read from the accessor parameter")


def _make_rejecting_operator(dunder: str) -> Callable:
    def reject(self, *args):
        self._reject(f"operator {dunder}")
    reject.__name__ = dunder
    return reject


# Casts, arithmetic and comparisons all count as unsupported expression shapes
_REJECTED_OPERATORS = (
    '__int__', '__float__', '__complex__', '__bytes__', '__round__', '__trunc__',
    '__floor__', '__ceil__', '__neg__', '__pos__', '__abs__', '__invert__',
    '__eq__', '__ne__', '__lt__', '__le__', '__gt__', '__ge__',
    '__add__', '__sub__', '__mul__', '__matmul__', '__truediv__', '__floordiv__',
    '__mod__', '__divmod__', '__pow__', '__lshift__', '__rshift__', '__and__',
    '__xor__', '__or__',
    '__radd__', '__rsub__', '__rmul__', '__rmatmul__', '__rtruediv__',
    '__rfloordiv__', '__rmod__', '__rdivmod__', '__rpow__', '__rlshift__',
    '__rrshift__', '__rand__', '__rxor__', '__ror__',
    '__enter__', '__exit__', '__await__', '__reversed__',
)

for _dunder in _REJECTED_OPERATORS:
    setattr(_PathRecorder, _dunder, _make_rejecting_operator(_dunder))
del _dunder


# Any conditional jump or identity test in the accessor body is a branch whose
# outcome the recorder cannot observe
def _is_branch(instruction: dis.Instruction) -> bool:
    return 'JUMP_IF' in instruction.opname or instruction.opname == 'IS_OP'


def _reject_branches(code: Any) -> None:
    pending = [code]
    while pending:
        current = pending.pop()
        for instruction in dis.get_instructions(current):
            if _is_branch(instruction):
                raise PathNotSupportedError(
                    f"conditional branch in the accessor body ({instruction.opname})"
                )
        pending.extend(const for const in current.co_consts if inspect.iscode(const))


def parse_path(accessor: Callable[[Any], Any]) -> Path:
    """Convert an accessor such as ``lambda o: o.b.items[1].value`` into a Path.

    Args:
        accessor: Callable taking the root object as its single argument and
            returning the leaf through attribute access and integer indexing.

    Returns:
        The recorded Path.

    Raises:
        PathNotSupportedError: If the accessor uses anything outside the
            supported member/index grammar.
    """
    if isinstance(accessor, Path):
        return accessor
    if not callable(accessor):
        raise PathNotSupportedError(f"accessor must be callable, got {type(accessor).__name__}")
    try:
        inspect.signature(accessor).bind(None)
    except TypeError:
        raise PathNotSupportedError("accessor must accept exactly one positional argument") from None
    except ValueError:
        # No introspectable signature; calling it will tell
        pass

    code = getattr(inspect.unwrap(accessor), '__code__', None)
    if code is not None:
        _reject_branches(code)

    result = accessor(_PathRecorder(()))
    if not isinstance(result, _PathRecorder):
        raise PathNotSupportedError(
            f"accessor returned {type(result).__name__} instead of a value read from its parameter"
        )
    path = Path(result._steps)
    logger.debug(f"Parsed accessor path: o{path}")
    return path
