"""Tests for PredictionOptions."""

from pathlib import Path

import pytest

from modelzoo.prediction import PredictionOptions
from modelzoo.prediction.options import PredictionValues
from modelzoo.settings import ModelZooSettings


def test_defaults():
    values = PredictionOptions().values
    assert values == PredictionValues(batch_size=1, cache_directory=None, number_of_tiles=1, tiling_enabled=True)


def test_options_from_settings(tmp_path):
    settings = ModelZooSettings(cache_dir=tmp_path, batch_size=8, number_of_tiles=3, tiling_enabled=False)
    values = PredictionOptions.options(settings).values

    assert values.batch_size == 8
    assert values.cache_directory == tmp_path
    assert values.number_of_tiles == 3
    assert values.tiling_enabled is False


def test_builder_returns_new_options():
    base = PredictionOptions()
    changed = base.batch_size(4).number_of_tiles(2).tiling_enabled(False).cache_directory("/tmp/zoo")

    assert base == PredictionOptions()
    assert changed.values.batch_size == 4
    assert changed.values.number_of_tiles == 2
    assert changed.values.tiling_enabled is False
    assert changed.values.cache_directory == Path("/tmp/zoo")
    assert changed != base


def test_cache_directory_can_be_cleared(tmp_path):
    options = PredictionOptions().cache_directory(tmp_path).cache_directory(None)
    assert options.values.cache_directory is None


@pytest.mark.parametrize("field", ["batch_size", "number_of_tiles"])
def test_counts_must_be_positive(field):
    with pytest.raises(ValueError, match=f"{field} must be >= 1"):
        getattr(PredictionOptions(), field)(0)
