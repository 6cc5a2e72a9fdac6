"""Pytest configuration and shared fixtures."""
import pytest

import objectlens.config as config_module
import objectlens.reconstruction as reconstruction_module
import objectlens.sequences as sequences_module
from objectlens import ReconstructionCache

from records import A, Area, Coordinate, MapState, make_a


@pytest.fixture(autouse=True)
def reset_lens_state():
    """Restore the process-wide lens config and registries after each test."""
    original_config = config_module._global_config
    original_descriptions = dict(reconstruction_module._type_descriptions)
    original_builders = dict(sequences_module._sequence_builders)

    yield

    config_module._global_config = original_config
    reconstruction_module._type_descriptions.clear()
    reconstruction_module._type_descriptions.update(original_descriptions)
    sequences_module._sequence_builders.clear()
    sequences_module._sequence_builders.update(original_builders)


@pytest.fixture
def cache():
    """Provide an empty reconstruction cache."""
    return ReconstructionCache()


@pytest.fixture
def a() -> A:
    """A{B{C("0"), D("0"), [C("0"), C("1"), C("2")]}}."""
    return make_a(["0", "1", "2"])


@pytest.fixture
def map_state() -> MapState:
    """Two areas with a few coordinates each."""
    return MapState(
        title="Fields",
        areas=(
            Area("Enser", (Coordinate(47.946812, 13.777095), Coordinate(47.944375, 13.777380))),
            Area("Galler", (Coordinate(47.946927, 13.777057), Coordinate(47.947813, 13.776992))),
        ),
    )
