"""
Framework configuration for the lens compiler.

A process-wide LensConfig holds the policy switches. config_context-style
scoping is available through lens_config(), which overrides the global value
for the current context only (contextvars), so a test or a single call site
can opt into a stricter policy without touching other threads.
"""

import contextvars
import dataclasses
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LensConfig:
    """Policy switches for planning and compiling setters.

    Attributes:
        strict_constructor_ties: Raise AmbiguousConstructorError when two
            equally accessible constructors both match a type's properties.
            When False, the first declared candidate wins.
        short_circuit_identical: Return the current instance unchanged when
            the rebuilt child is the very same object as the old child.
    """
    strict_constructor_ties: bool = False
    short_circuit_identical: bool = True


_DEFAULT_CONFIG = LensConfig()

# Global config, visible from every thread
_global_config: LensConfig = _DEFAULT_CONFIG

# Scoped override set by lens_config(); None means "use the global config"
_scoped_config: contextvars.ContextVar[Optional[LensConfig]] = contextvars.ContextVar(
    'objectlens_scoped_config', default=None
)


def get_lens_config() -> LensConfig:
    """Return the config active in the current context."""
    scoped = _scoped_config.get()
    return scoped if scoped is not None else _global_config


def set_lens_config(config: LensConfig) -> None:
    """Replace the process-wide config."""
    global _global_config
    if not isinstance(config, LensConfig):
        raise TypeError(f"Expected LensConfig, got {type(config).__name__}")
    _global_config = config
    logger.debug(f"Lens config set to {config}")


def reset_lens_config() -> None:
    """Restore the process-wide config to its defaults."""
    set_lens_config(_DEFAULT_CONFIG)


@contextmanager
def lens_config(**overrides) -> Generator[LensConfig, None, None]:
    """Temporarily override config fields for the current context.

    Example:
        with lens_config(strict_constructor_ties=True):
            setter = create_setter(lambda o: o.value)
    """
    config = dataclasses.replace(get_lens_config(), **overrides)
    token = _scoped_config.set(config)
    try:
        yield config
    finally:
        _scoped_config.reset(token)
