"""
Exception hierarchy for the lens compiler.

Compile-time failures (unsupported accessor shapes, types that cannot be
rebuilt) prevent a setter from being created. Invocation-time failures
(index out of range, a constructor or getter raising) surface to the caller
of the setter. Nothing here is retried.
"""

from typing import Optional, Sequence


class LensError(Exception):
    """Base class for all objectlens errors."""


class PathNotSupportedError(LensError):
    """The accessor uses a construct outside the member/index grammar."""

    def __init__(self, construct: str, path: Optional[str] = None):
        self.construct = construct
        self.path = path
        where = f" after '{path}'" if path else ""
        super().__init__(f"Unsupported accessor construct{where}: {construct}")


class NoReconstructionPathError(LensError, TypeError):
    """No constructor of a type bijectively matches its public properties."""

    def __init__(self, type_: type, reason: str = ""):
        self.type = type_
        message = f"No constructor of {type_.__qualname__} matches its public properties"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AmbiguousConstructorError(NoReconstructionPathError):
    """Several equally accessible constructors match (strict tie policy)."""

    def __init__(self, type_: type, candidates: Sequence[str]):
        self.candidates = tuple(candidates)
        super().__init__(
            type_,
            f"ambiguous between equally accessible constructors {', '.join(self.candidates)}",
        )


class IndexOutOfRangeError(LensError, IndexError):
    """An index step points outside the sequence met at invocation time."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"Index {index} out of range for sequence of length {length}")


class ReconstructionFailedError(LensError):
    """A constructor or property getter raised while rebuilding an instance."""

    def __init__(self, type_: type, cause: BaseException, detail: str = ""):
        self.type = type_
        self.cause = cause
        message = f"Failed to rebuild {type_.__qualname__}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(f"{message}: {type(cause).__name__}: {cause}")
