"""Tests for DefaultSingleImagePrediction."""

import numpy as np
import pytest

from conftest import GainBackend, make_description
from modelzoo.archive import ModelZooArchive
from modelzoo.exceptions import AxesError, MissingLibraryError, PredictionError
from modelzoo.prediction import DefaultSingleImagePrediction
from modelzoo.prediction.backends import BACKENDS
from modelzoo.specification import ModelSpecification


class UnavailableBackend(GainBackend):
    requires = "modelzoo_runtime_that_is_not_installed"


def make_prediction(context, archive, image, axes, **options):
    prediction = DefaultSingleImagePrediction(context=context)
    prediction.set_trained_model(archive)
    prediction.set_input(image, axes)
    for name, value in options.items():
        getattr(prediction, f"set_{name}")(value)
    return prediction


def test_predicts_2d_image(context, archive, gain_backend):
    image = np.random.rand(8, 12).astype(np.float32)
    prediction = make_prediction(context, archive, image, "yx")
    prediction.run()

    np.testing.assert_allclose(prediction.get_output(), image * 2, rtol=1e-6)
    assert prediction.output_axes == "yx"
    assert gain_backend.calls == [(1, 8, 12, 1)]


def test_weights_are_extracted_to_cache(context, archive, gain_backend, settings):
    make_prediction(context, archive, np.ones((4, 4)), "yx").run()
    assert (settings.cache_dir / "gain-model" / "weights.txt").read_text() == "2.0"


def test_explicit_cache_dir(context, archive, gain_backend, tmp_path):
    prediction = make_prediction(context, archive, np.ones((4, 4)), "yx", cache_dir=tmp_path / "elsewhere")
    prediction.run()
    assert (tmp_path / "elsewhere" / "gain-model" / "weights.txt").exists()


def test_extra_axes_are_batched(context, archive, gain_backend):
    image = np.random.rand(3, 8, 8).astype(np.float32)
    prediction = make_prediction(context, archive, image, "zyx", batch_size=2)
    prediction.run()

    np.testing.assert_allclose(prediction.get_output(), image * 2, rtol=1e-6)
    assert prediction.output_axes == "zyx"
    assert gain_backend.calls == [(2, 8, 8, 1), (1, 8, 8, 1)]


def test_tiles_are_predicted_separately(context, archive, gain_backend):
    image = np.random.rand(16, 8).astype(np.float32)
    prediction = make_prediction(context, archive, image, "yx", number_of_tiles=2)
    prediction.run()

    np.testing.assert_allclose(prediction.get_output(), image * 2, rtol=1e-6)
    assert len(gain_backend.calls) == 2


def test_tiling_disabled(context, archive, gain_backend):
    image = np.random.rand(16, 8).astype(np.float32)
    prediction = make_prediction(context, archive, image, "yx", number_of_tiles=4, tiling_enabled=False)
    prediction.run()
    assert gain_backend.calls == [(1, 16, 8, 1)]


def test_processing_steps_are_applied(context, archive_dir, gain_backend):
    description = make_description()
    description["inputs"][0]["preprocessing"] = [{"name": "scale_linear", "kwargs": {"gain": 0.5}}]
    description["outputs"][0]["postprocessing"] = [{"name": "clip", "kwargs": {"max": 1.0}}]
    archive = ModelZooArchive(ModelSpecification.from_dict(description), source=archive_dir)
    image = np.array([[0.2, 0.8, 1.6, 3.0]] * 4, dtype=np.float32)

    prediction = make_prediction(context, archive, image, "yx")
    prediction.run()

    np.testing.assert_allclose(prediction.get_output(), np.minimum(image, 1.0), rtol=1e-6)


def test_unconfigured_prediction(context):
    with pytest.raises(PredictionError, match="No trained model set"):
        DefaultSingleImagePrediction(context=context).run()


def test_axes_must_match_image(context, archive, gain_backend):
    with pytest.raises(AxesError):
        make_prediction(context, archive, np.ones((4, 4)), "zyx")


def test_invalid_batch_size(context):
    with pytest.raises(PredictionError):
        DefaultSingleImagePrediction(context=context).set_batch_size(0)


def test_no_backend_for_weights(context, archive, monkeypatch):
    monkeypatch.delitem(BACKENDS, "torchscript")
    prediction = make_prediction(context, archive, np.ones((4, 4)), "yx")
    with pytest.raises(MissingLibraryError, match="torchscript \\(no backend\\)"):
        prediction.run()


def test_backend_library_missing(context, archive, monkeypatch):
    monkeypatch.setitem(BACKENDS, "torchscript", UnavailableBackend)
    prediction = make_prediction(context, archive, np.ones((4, 4)), "yx")
    with pytest.raises(MissingLibraryError, match="needs modelzoo_runtime_that_is_not_installed"):
        prediction.run()
