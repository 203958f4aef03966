"""Pytest configuration and shared fixtures for modelzoo tests."""

import io
from pathlib import Path

import numpy as np
import pytest
import yaml
from rich.console import Console

from modelzoo.archive import ModelZooArchive
from modelzoo.context import Context
from modelzoo.prediction.backends import BACKENDS, PredictionBackend
from modelzoo.settings import ModelZooSettings
from modelzoo.specification import ModelSpecification
from modelzoo.ui import UIService


class GainBackend(PredictionBackend):
    """Numpy backend: multiplies the batch by the number stored in the weights file."""

    weights_id = "torchscript"
    requires = ""
    calls: list = []

    def __init__(self, device: str = "cpu"):
        super().__init__(name="gain", device=device)
        self.gain = None

    def load(self, weights_path: Path, weights) -> None:
        self.gain = float(weights_path.read_text())

    def predict(self, batch: np.ndarray) -> np.ndarray:
        GainBackend.calls.append(batch.shape)
        return batch * self.gain


def make_description(**overrides) -> dict:
    """Model description dict for a 2D single-channel model."""
    data = {
        "name": "Gain Model",
        "description": "Multiplies images by a constant",
        "authors": ["Test Author"],
        "inputs": [
            {
                "name": "raw",
                "axes": "byxc",
                "data_type": "float32",
                "shape": {"min": [1, 4, 4, 1], "step": [0, 4, 4, 0]},
            }
        ],
        "outputs": [
            {
                "name": "scaled",
                "axes": "byxc",
                "data_type": "float32",
                "halo": [0, 2, 2, 0],
                "shape": {"reference_input": "raw", "scale": [1, 1, 1, 1], "offset": [0, 0, 0, 0]},
            }
        ],
        "weights": {"torchscript": {"source": "weights.txt"}},
        "test_inputs": ["test_input.npy"],
    }
    data.update(overrides)
    return data


@pytest.fixture
def description():
    return make_description()


@pytest.fixture
def gain_backend(monkeypatch):
    """Route torchscript weights to GainBackend."""
    GainBackend.calls = []
    monkeypatch.setitem(BACKENDS, "torchscript", GainBackend)
    return GainBackend


@pytest.fixture
def archive_dir(tmp_path, description):
    """Unpacked archive directory with a gain of 2."""
    root = tmp_path / "gain-model"
    root.mkdir()
    (root / "model.yaml").write_text(yaml.dump(description))
    (root / "weights.txt").write_text("2.0")
    np.save(root / "test_input.npy", np.ones((4, 4), dtype=np.float32))
    return root


@pytest.fixture
def archive(archive_dir):
    spec = ModelSpecification.from_yaml((archive_dir / "model.yaml").read_text())
    return ModelZooArchive(specification=spec, source=archive_dir)


@pytest.fixture
def ui_output():
    return io.StringIO()


@pytest.fixture
def settings(tmp_path):
    return ModelZooSettings(cache_dir=tmp_path / "cache")


@pytest.fixture
def context(settings, ui_output):
    ui = UIService(Console(file=ui_output, width=200))
    return Context(settings=settings, ui_service=ui, discover_plugins=False)
