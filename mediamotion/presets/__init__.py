"""
Preset Service
==============
Preset transforms, the patch engine that merges their output into a
composition, and sessions that apply presets in sequence.
"""

from .models import (
    PatchOutput,
    Preset,
    PresetInput,
    PresetItem,
    PresetMetadata,
    PresetOptions,
    PresetOutput,
    PresetPatch,
    PresetType,
)
from .patches import apply_patch, deep_merge_data
from .registry import PresetRegistry, default_preset_registry
from .sandbox import run_preset
from .session import PresetSession

__all__ = [
    "PatchOutput",
    "Preset",
    "PresetInput",
    "PresetItem",
    "PresetMetadata",
    "PresetOptions",
    "PresetOutput",
    "PresetPatch",
    "PresetType",
    "apply_patch",
    "deep_merge_data",
    "PresetRegistry",
    "default_preset_registry",
    "run_preset",
    "PresetSession",
]
