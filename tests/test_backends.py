"""Tests for prediction backends."""

from __future__ import annotations

import importlib.util

import numpy as np
import pytest

from modelzoo.exceptions import MissingLibraryError, PredictionError
from modelzoo.prediction.backends import (
    BACKENDS,
    OnnxBackend,
    PredictionBackend,
    TensorFlowSavedModelBackend,
    TorchScriptBackend,
    get_backend_class,
    register_backend,
)
from modelzoo.specification import (
    OnnxSpecification,
    TensorFlowSavedModelBundleSpecification,
    TorchScriptSpecification,
)


def test_backends_are_keyed_by_weights_id():
    assert get_backend_class("torchscript") is TorchScriptBackend
    assert get_backend_class("onnx") is OnnxBackend
    assert get_backend_class("tensorflow-saved-model-bundle") is TensorFlowSavedModelBackend
    assert get_backend_class("keras-hdf5") is None


def test_register_backend(monkeypatch):
    monkeypatch.setattr("modelzoo.prediction.backends.BACKENDS", dict(BACKENDS))

    @register_backend
    class KerasBackend(PredictionBackend):
        weights_id = "keras-hdf5"

        def load(self, weights_path, weights):
            pass

        def predict(self, batch):
            return batch

    assert get_backend_class("keras-hdf5") is KerasBackend


def test_capabilities():
    backend = OnnxBackend(device="cuda")
    capabilities = backend.get_capabilities()
    assert capabilities["name"] == "onnx"
    assert capabilities["weights_id"] == "onnx"
    assert capabilities["device"] == "cuda"
    assert capabilities["available"] == (importlib.util.find_spec("onnxruntime") is not None)


@pytest.mark.parametrize("backend_cls", [TorchScriptBackend, OnnxBackend, TensorFlowSavedModelBackend])
def test_predict_before_load(backend_cls):
    with pytest.raises(PredictionError, match="not loaded"):
        backend_cls().predict(np.zeros((1, 4, 4, 1), dtype=np.float32))


# ---------------------------------------------------------------------------
# TorchScript
# ---------------------------------------------------------------------------


def test_torchscript_backend(tmp_path):
    torch = pytest.importorskip("torch")

    class Triple(torch.nn.Module):
        def forward(self, x):
            return x * 3

    path = tmp_path / "weights.pt"
    torch.jit.script(Triple()).save(str(path))

    backend = TorchScriptBackend()
    backend.load(path, TorchScriptSpecification(source="weights.pt"))
    batch = np.random.rand(2, 4, 4, 1).astype(np.float32)

    np.testing.assert_allclose(backend.predict(batch), batch * 3, rtol=1e-6)
    backend.close()


def test_torchscript_invalid_file(tmp_path):
    pytest.importorskip("torch")
    path = tmp_path / "weights.pt"
    path.write_bytes(b"not a model")

    with pytest.raises(PredictionError, match="Could not load TorchScript model"):
        TorchScriptBackend().load(path, TorchScriptSpecification(source="weights.pt"))


# ---------------------------------------------------------------------------
# ONNX
# ---------------------------------------------------------------------------


def test_onnx_backend(tmp_path):
    pytest.importorskip("onnxruntime")
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper

    graph = helper.make_graph(
        [helper.make_node("Relu", ["input"], ["output"])],
        "relu",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [None, 4, 4, 1])],
        [helper.make_tensor_value_info("output", TensorProto.FLOAT, [None, 4, 4, 1])],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    path = tmp_path / "model.onnx"
    onnx.save(model, str(path))

    backend = OnnxBackend()
    backend.load(path, OnnxSpecification(source="model.onnx", opset_version=13))
    batch = np.random.randn(3, 4, 4, 1).astype(np.float32)

    np.testing.assert_allclose(backend.predict(batch), np.maximum(batch, 0))
    assert backend.input_name == "input"


def test_onnx_invalid_file(tmp_path):
    pytest.importorskip("onnxruntime")
    path = tmp_path / "model.onnx"
    path.write_bytes(b"garbage")

    with pytest.raises(PredictionError, match="Could not load ONNX model"):
        OnnxBackend().load(path, OnnxSpecification(source="model.onnx"))


# ---------------------------------------------------------------------------
# TensorFlow
# ---------------------------------------------------------------------------


@pytest.mark.skipif(importlib.util.find_spec("tensorflow") is not None, reason="tensorflow is installed")
def test_tensorflow_missing(tmp_path):
    backend = TensorFlowSavedModelBackend()
    assert not backend.is_available()
    with pytest.raises(MissingLibraryError, match="pip install tensorflow"):
        backend.load(tmp_path / "bundle.zip", TensorFlowSavedModelBundleSpecification(source="bundle.zip"))


def test_tensorflow_bundle_is_unpacked(tmp_path):
    import zipfile

    bundle = tmp_path / "bundle.zip"
    with zipfile.ZipFile(bundle, "w") as zf:
        zf.writestr("saved_model.pb", b"")
        zf.writestr("variables/variables.index", b"")

    target = TensorFlowSavedModelBackend()._unpack(bundle)
    assert target == tmp_path / "bundle"
    assert (target / "saved_model.pb").exists()
    assert (target / "variables" / "variables.index").exists()


def test_tensorflow_bundle_replaces_stale_copy(tmp_path):
    import zipfile

    bundle = tmp_path / "bundle.zip"
    backend = TensorFlowSavedModelBackend()
    with zipfile.ZipFile(bundle, "w") as zf:
        zf.writestr("saved_model.pb", b"first")
        zf.writestr("variables/old.index", b"")
    backend._unpack(bundle)

    with zipfile.ZipFile(bundle, "w") as zf:
        zf.writestr("saved_model.pb", b"second")
    target = backend._unpack(bundle)

    assert (target / "saved_model.pb").read_bytes() == b"second"
    assert not (target / "variables" / "old.index").exists()


def test_tensorflow_bundle_not_a_zip(tmp_path):
    bundle = tmp_path / "bundle.zip"
    bundle.write_bytes(b"not a zip")
    with pytest.raises(PredictionError, match="not a zip archive"):
        TensorFlowSavedModelBackend()._unpack(bundle)
