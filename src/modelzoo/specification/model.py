"""Pydantic models for the model description (``model.yaml``).

Field names follow the bioimage.io resource description where they overlap.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..exceptions import SpecificationError
from .weights import WeightsSpecification, normalize_weights_id, parse_weights

AXES_ALPHABET = "bitczyx"
SPATIAL_AXES = "zyx"


def validate_axes(axes: str) -> str:
    """Lower-case an axes string and check its letters.

    Raises:
        ValueError: If a letter is unknown or repeated
    """
    axes = axes.lower()
    unknown = [a for a in axes if a not in AXES_ALPHABET]
    if unknown:
        raise ValueError(f"unknown axes {unknown!r} in '{axes}' (allowed: {AXES_ALPHABET})")
    if len(set(axes)) != len(axes):
        raise ValueError(f"repeated axis in '{axes}'")
    return axes


class ProcessingStep(BaseModel):
    """One pre- or postprocessing step."""

    name: str
    kwargs: dict[str, Any] = Field(default_factory=dict)


class ParametrizedInputShape(BaseModel):
    """Valid input sizes are ``min + k * step`` per axis."""

    min: list[int]
    step: list[int]


class ImplicitOutputShape(BaseModel):
    """Output size is ``input * scale + 2 * offset`` per axis."""

    reference_input: Optional[str] = None
    scale: list[float]
    offset: list[float]


class TensorSpecification(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    axes: str
    data_type: str = "float32"
    data_range: Optional[tuple[Optional[float], Optional[float]]] = None
    description: Optional[str] = None

    @field_validator("axes")
    @classmethod
    def _check_axes(cls, value: str) -> str:
        return validate_axes(value)


class InputTensorSpecification(TensorSpecification):
    shape: Union[list[int], ParametrizedInputShape]
    preprocessing: list[ProcessingStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shape(self) -> "InputTensorSpecification":
        if isinstance(self.shape, ParametrizedInputShape):
            lengths = {len(self.shape.min), len(self.shape.step)}
        else:
            lengths = {len(self.shape)}
        if lengths != {len(self.axes)}:
            raise ValueError(f"shape of input '{self.name}' does not match axes '{self.axes}'")
        return self

    def min_shape(self) -> list[int]:
        if isinstance(self.shape, ParametrizedInputShape):
            return list(self.shape.min)
        return list(self.shape)

    def step(self) -> list[int]:
        if isinstance(self.shape, ParametrizedInputShape):
            return list(self.shape.step)
        return [0] * len(self.axes)


class OutputTensorSpecification(TensorSpecification):
    shape: Union[list[int], ImplicitOutputShape]
    halo: Optional[list[int]] = None
    postprocessing: list[ProcessingStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shape(self) -> "OutputTensorSpecification":
        if isinstance(self.shape, ImplicitOutputShape):
            lengths = {len(self.shape.scale), len(self.shape.offset)}
        else:
            lengths = {len(self.shape)}
        if self.halo is not None:
            lengths.add(len(self.halo))
        if lengths != {len(self.axes)}:
            raise ValueError(f"shape of output '{self.name}' does not match axes '{self.axes}'")
        return self

    def halo_for(self, axis: str) -> int:
        if self.halo is None or axis not in self.axes:
            return 0
        return self.halo[self.axes.index(axis)]

    def scale_for(self, axis: str) -> float:
        if isinstance(self.shape, ImplicitOutputShape) and axis in self.axes:
            return self.shape.scale[self.axes.index(axis)]
        return 1.0

    def offset_for(self, axis: str) -> float:
        if isinstance(self.shape, ImplicitOutputShape) and axis in self.axes:
            return self.shape.offset[self.axes.index(axis)]
        return 0.0


class ModelSpecification(BaseModel):
    """Complete description of a model archive."""

    model_config = ConfigDict(extra="allow")

    format_version: str = "0.3.0"
    name: str
    description: Optional[str] = None
    authors: list[str] = Field(default_factory=list)
    license: Optional[str] = None
    documentation: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    covers: list[str] = Field(default_factory=list)
    source: Optional[str] = Field(
        default=None,
        description="Name of the prediction plugin that runs this model",
    )
    inputs: list[InputTensorSpecification]
    outputs: list[OutputTensorSpecification]
    weights: dict[str, WeightsSpecification] = Field(default_factory=dict)
    test_inputs: list[str] = Field(default_factory=list)
    test_outputs: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("weights", mode="before")
    @classmethod
    def _parse_weights(cls, value: Any) -> dict[str, WeightsSpecification]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("weights must be a mapping of weights id to entry")
        return {normalize_weights_id(k): parse_weights(k, v) for k, v in value.items()}

    @model_validator(mode="after")
    def _check_tensors(self) -> "ModelSpecification":
        if not self.inputs:
            raise ValueError("model needs at least one input")
        if not self.outputs:
            raise ValueError("model needs at least one output")
        return self

    def get_weights(self, weights_id: str) -> Optional[WeightsSpecification]:
        return self.weights.get(normalize_weights_id(weights_id))

    def referenced_files(self) -> list[str]:
        """Archive files this description points at, without duplicates."""
        files: list[str] = []
        for weights in self.weights.values():
            files.append(weights.source)
            files.extend(weights.attachments)
        files.extend(self.test_inputs)
        files.extend(self.test_outputs)
        files.extend(self.covers)
        if self.documentation and "://" not in self.documentation:
            files.append(self.documentation)
        return list(dict.fromkeys(f for f in files if f))

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True, mode="json")
        # Subclass fields (e.g. tag) are dropped when dumping through the base annotation
        data["weights"] = {
            key: weights.model_dump(exclude_none=True, mode="json")
            for key, weights in self.weights.items()
        }
        return data

    def to_yaml(self) -> str:
        return yaml.dump(
            self.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "ModelSpecification":
        """Validate a parsed description.

        Raises:
            SpecificationError: If the description is invalid
        """
        if not isinstance(data, dict):
            raise SpecificationError("model description must be a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SpecificationError(f"Invalid model description: {e}") from e

    @classmethod
    def from_yaml(cls, text: Union[str, bytes]) -> "ModelSpecification":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SpecificationError(f"Model description is not valid YAML: {e}") from e
        return cls.from_dict(data)


def load_specification(path: Union[str, Path]) -> ModelSpecification:
    """Load a model description from a YAML file."""
    return ModelSpecification.from_yaml(Path(path).read_text(encoding="utf-8"))
