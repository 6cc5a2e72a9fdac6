"""Tests for lens configuration."""
import threading

import pytest

from objectlens import LensConfig, get_lens_config, lens_config, reset_lens_config, set_lens_config


def test_defaults():
    config = get_lens_config()
    assert config.strict_constructor_ties is False
    assert config.short_circuit_identical is True


def test_set_and_reset():
    set_lens_config(LensConfig(strict_constructor_ties=True))
    assert get_lens_config().strict_constructor_ties is True
    reset_lens_config()
    assert get_lens_config() == LensConfig()


def test_set_rejects_other_types():
    with pytest.raises(TypeError):
        set_lens_config({'strict_constructor_ties': True})


def test_scoped_override_restores():
    with lens_config(short_circuit_identical=False) as config:
        assert config.short_circuit_identical is False
        assert get_lens_config() is config
    assert get_lens_config().short_circuit_identical is True


def test_global_config_visible_from_threads():
    set_lens_config(LensConfig(strict_constructor_ties=True))
    seen = []
    worker = threading.Thread(target=lambda: seen.append(get_lens_config().strict_constructor_ties))
    worker.start()
    worker.join()
    assert seen == [True]


def test_unknown_override_rejected():
    with pytest.raises(TypeError):
        with lens_config(no_such_option=True):
            pass
