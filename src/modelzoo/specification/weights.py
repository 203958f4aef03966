"""Weights specifications, one per prediction runtime.

Each entry under ``weights:`` in a model description names a file in the
archive and the runtime that can execute it. The key is the weights id,
e.g. ``torchscript`` or ``tensorflow-saved-model-bundle``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import SpecificationError


class WeightsSpecification(BaseModel):
    """Common fields of every weights entry."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    ID: ClassVar[str] = "unknown"

    source: str = Field(description="Weights file, relative to the archive root")
    sha256: Optional[str] = Field(default=None, description="Checksum of the source file")
    authors: list[str] = Field(default_factory=list)
    attachments: list[str] = Field(
        default_factory=list,
        description="Additional archive files the weights need",
    )

    @classmethod
    def weights_id(cls) -> str:
        return cls.ID

    @property
    def id(self) -> str:
        return self.weights_id()


class TensorFlowSavedModelBundleSpecification(WeightsSpecification):
    """Zipped TensorFlow SavedModel directory."""

    ID: ClassVar[str] = "tensorflow-saved-model-bundle"

    tag: str = "serve"
    tensorflow_version: Optional[str] = None


class TorchScriptSpecification(WeightsSpecification):
    """Serialized TorchScript module (.pt)."""

    ID: ClassVar[str] = "torchscript"

    pytorch_version: Optional[str] = None


class OnnxSpecification(WeightsSpecification):
    """ONNX graph (.onnx)."""

    ID: ClassVar[str] = "onnx"

    opset_version: Optional[int] = None


WEIGHTS_TYPES: dict[str, type[WeightsSpecification]] = {
    TensorFlowSavedModelBundleSpecification.ID: TensorFlowSavedModelBundleSpecification,
    TorchScriptSpecification.ID: TorchScriptSpecification,
    OnnxSpecification.ID: OnnxSpecification,
}


def normalize_weights_id(key: str) -> str:
    """Normalize a weights key (``tensorflow_saved_model_bundle`` -> ``tensorflow-saved-model-bundle``)."""
    return key.strip().lower().replace("_", "-")


def parse_weights(key: str, data: Any) -> WeightsSpecification:
    """Build the weights specification for one ``weights:`` entry.

    Raises:
        SpecificationError: If the weights id is unknown
    """
    if isinstance(data, WeightsSpecification):
        return data
    weights_id = normalize_weights_id(key)
    cls = WEIGHTS_TYPES.get(weights_id)
    if cls is None:
        raise SpecificationError(
            f"Unknown weights format '{key}'. Known: {sorted(WEIGHTS_TYPES)}"
        )
    return cls.model_validate(data)
