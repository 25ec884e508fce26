"""
Preset Models
=============
Presets, their outputs, and the typed patches applied to a composition.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, Field, field_validator, model_validator

from mediamotion.composition.models import NodeContext, RenderableNode


class PresetType(str, Enum):
    """How a preset's output merges into the composition."""
    FULL = "full"  # Replace the whole tree, merge config/style
    CHILDREN = "children"  # Append children to the target, deep-merge its data
    DATA = "data"  # Replace the target's data
    CONTEXT = "context"  # Replace the target's context
    EFFECTS = "effects"  # Replace the target's effects


class PatchOutput(BaseModel):
    """Payload of a preset patch. Which fields matter depends on the preset type."""
    id: Optional[str] = None
    children_data: Optional[List[RenderableNode]] = Field(default=None, alias="childrenData")
    data: Optional[Dict[str, Any]] = None
    context: Optional[NodeContext] = None
    effects: Optional[Any] = None
    config: Optional[Dict[str, Any]] = None
    style: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True
        extra = "allow"

    @field_validator("children_data", mode="before")
    @classmethod
    def coerce_single_node(cls, value):
        if isinstance(value, (dict, RenderableNode)):
            return [value]
        return value


class PresetPatch(BaseModel):
    """A typed, partial mutation of a composition tree."""
    preset_type: PresetType = Field(alias="presetType")
    target_id: Optional[str] = Field(default=None, alias="targetId")
    output: PatchOutput = Field(default_factory=PatchOutput)

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def require_target(self):
        if self.preset_type != PresetType.FULL and not self.target_id:
            raise ValueError(f"'{self.preset_type.value}' patches need a targetId")
        return self


class PresetOptions(BaseModel):
    """Options a preset returns alongside its output."""
    attached_to_id: Optional[str] = Field(default=None, alias="attachedToId")
    clip: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True
        extra = "allow"


class PresetOutput(BaseModel):
    """Raw return value of a preset transform."""
    output: PatchOutput
    options: PresetOptions = Field(default_factory=PresetOptions)

    class Config:
        populate_by_name = True

    def to_patch(self, preset_type: PresetType) -> PresetPatch:
        """
        Build the patch for ``preset_type``.

        The target is ``options.attachedToId``, else ``output.id``, else the
        id of the first output child.
        """
        target_id = self.options.attached_to_id or self.output.id
        if not target_id and self.output.children_data:
            target_id = self.output.children_data[0].id
        if preset_type == PresetType.FULL:
            target_id = None
        return PresetPatch(preset_type=preset_type, target_id=target_id, output=self.output)


class PresetMetadata(BaseModel):
    """Descriptive metadata of a preset."""
    id: str
    title: str
    preset_type: PresetType = Field(alias="presetType")
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    default_input_params: Dict[str, Any] = Field(default_factory=dict, alias="defaultInputParams")

    class Config:
        populate_by_name = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PresetInput(BaseModel):
    """The single argument handed to a preset transform."""
    params: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)
    style: Dict[str, Any] = Field(default_factory=dict)
    clip: Dict[str, Any] = Field(default_factory=dict)


@dataclass
class Preset:
    """A registered preset: metadata plus a pure, synchronous transform."""
    metadata: PresetMetadata
    transform: Callable[[PresetInput], Any]
    params_model: Optional[Type[BaseModel]] = None  # Validates PresetInput.params

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def preset_type(self) -> PresetType:
        return self.metadata.preset_type


class PresetItem(BaseModel):
    """One entry of a preset sequence applied by a session."""
    preset_id: str = Field(alias="presetId")
    params: Optional[Dict[str, Any]] = None  # None: use the preset defaults

    class Config:
        populate_by_name = True
