"""
Per-type cache of reconstruction plans.

Type shapes are static for the life of the process, so entries are never
invalidated. Reads are lock-free dict lookups; population happens under a
lock so that a reader only ever sees a fully built plan, and the first plan
stored for a type is the one every caller gets back.
"""

import logging
import threading
from typing import Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ReconstructionCache(Generic[T]):
    """
    Thread-safe, lazily populated mapping from type to its resolved plan.

    Racing threads may each compute a plan for the same unseen type; the
    computation is deterministic and side-effect free, so the duplicate is
    simply discarded.

    Example:
        cache = ReconstructionCache()
        plan = cache.get_or_compute(Point, lambda: build_plan(Point))
    """

    def __init__(self):
        self._plans: Dict[type, T] = {}
        self._lock = threading.Lock()

    def get(self, key: type) -> Optional[T]:
        """
        Get a cached plan without computing.

        Args:
            key: The type the plan belongs to

        Returns:
            Cached plan or None if not resolved yet
        """
        return self._plans.get(key)

    def get_or_compute(self, key: type, compute_fn: Callable[[], T]) -> T:
        """
        Get the cached plan or compute, publish and return it.

        Args:
            key: The type the plan belongs to
            compute_fn: Builds the plan on a cache miss; exceptions propagate
                and nothing is stored

        Returns:
            The plan stored for key
        """
        plan = self._plans.get(key)
        if plan is not None:
            return plan

        # Compute outside the lock: introspection may resolve other types
        computed = compute_fn()

        with self._lock:
            plan = self._plans.setdefault(key, computed)
        if plan is computed:
            logger.debug(f"Cached reconstruction plan for {getattr(key, '__qualname__', key)}")
        return plan

    def put(self, key: type, plan: T) -> T:
        """
        Store a plan unless one is already present.

        Returns:
            The plan stored for key (the existing one if there was one)
        """
        with self._lock:
            return self._plans.setdefault(key, plan)

    def __contains__(self, key: type) -> bool:
        return key in self._plans

    def __len__(self) -> int:
        return len(self._plans)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({len(self._plans)} plans)'


# Process-wide default, used when no cache is passed explicitly
default_cache: ReconstructionCache = ReconstructionCache()
