"""Tests for pre- and postprocessing steps."""

import numpy as np
import pytest

from modelzoo.exceptions import SpecificationError
from modelzoo.prediction.processing import apply_steps, check_steps
from modelzoo.specification import ProcessingStep


def step(name, **kwargs):
    return ProcessingStep(name=name, kwargs=kwargs)


def test_zero_mean_unit_variance_per_sample():
    array = np.stack([np.arange(16.0).reshape(4, 4), 10 * np.arange(16.0).reshape(4, 4)])
    result = apply_steps([step("zero_mean_unit_variance")], array, "byx")

    for sample in result:
        assert sample.mean() == pytest.approx(0.0, abs=1e-5)
        assert sample.std() == pytest.approx(1.0, abs=1e-4)


def test_zero_mean_unit_variance_fixed_per_channel():
    array = np.ones((1, 2, 2, 2), dtype=np.float32)
    result = apply_steps(
        [step("zero_mean_unit_variance", mode="fixed", mean=[1.0, 0.0], std=[1.0, 2.0], eps=0.0)],
        array,
        "byxc",
    )
    np.testing.assert_allclose(result[..., 0], 0.0)
    np.testing.assert_allclose(result[..., 1], 0.5)


def test_fixed_mode_needs_mean_and_std():
    with pytest.raises(SpecificationError, match="needs mean and std"):
        apply_steps([step("zero_mean_unit_variance", mode="fixed")], np.ones((1, 2)), "bx")


def test_scale_linear_then_clip():
    array = np.array([[-1.0, 0.5, 3.0]])
    result = apply_steps(
        [step("scale_linear", gain=2.0, offset=1.0), step("clip", min=0.0, max=4.0)],
        array,
        "bx",
    )
    np.testing.assert_allclose(result, [[0.0, 2.0, 4.0]])


def test_scale_range():
    array = np.linspace(0, 100, 101, dtype=np.float32)[np.newaxis]
    result = apply_steps(
        [step("scale_range", min_percentile=0, max_percentile=100, eps=0.0)], array, "bx"
    )
    assert result.min() == pytest.approx(0.0)
    assert result.max() == pytest.approx(1.0)


def test_sigmoid_and_binarize():
    array = np.array([[-10.0, 0.0, 10.0]])
    probabilities = apply_steps([step("sigmoid")], array, "bx")
    assert probabilities[0, 1] == pytest.approx(0.5)

    mask = apply_steps([step("sigmoid"), step("binarize", threshold=0.5)], array, "bx")
    np.testing.assert_array_equal(mask, [[0.0, 0.0, 1.0]])


def test_per_channel_values_need_channel_axis():
    with pytest.raises(SpecificationError, match="no 'c' axis"):
        apply_steps([step("scale_linear", gain=[1.0, 2.0])], np.ones((1, 4)), "bx")


def test_unknown_step():
    with pytest.raises(SpecificationError, match="Unknown processing steps"):
        check_steps([step("gaussian_blur")])


def test_invalid_step_arguments():
    with pytest.raises(SpecificationError, match="Invalid arguments for step 'clip'"):
        apply_steps([step("clip", lower=0)], np.ones((1, 4)), "bx")


def test_unknown_mode():
    with pytest.raises(SpecificationError, match="Unsupported processing mode"):
        apply_steps([step("scale_range", mode="per_image")], np.ones((1, 4)), "bx")
