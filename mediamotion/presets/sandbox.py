"""
Preset Sandbox

Runs a preset transform behind a boundary: the transform gets deep copies of
its inputs as a single ``PresetInput`` argument, and anything it raises or
returns in the wrong shape becomes a ``MalformedPresetError``. Transforms are
registered Python callables; preset source text is never compiled.
"""

import copy
from typing import Any, Dict, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from mediamotion.errors import MalformedPresetError
from .models import Preset, PresetInput, PresetOutput, PresetPatch


def run_preset(
    preset: Preset,
    params: Optional[Dict[str, Any]] = None,
    config: Optional[Dict[str, Any]] = None,
    style: Optional[Dict[str, Any]] = None,
    clip: Optional[Dict[str, Any]] = None,
) -> Tuple[PresetOutput, PresetPatch]:
    """
    Execute ``preset`` and build its patch.

    Args:
        preset: Registered preset
        params: Input parameters (default: the preset's default input params)
        config: Current composition config, visible to the transform
        style: Current composition style, visible to the transform
        clip: Clip options carried over from an earlier full preset

    Returns:
        (raw output, patch)

    Raises:
        MalformedPresetError: invalid params, transform error, or bad output shape
    """
    if params is None:
        params = preset.metadata.default_input_params

    params = copy.deepcopy(params)
    if preset.params_model is not None:
        try:
            params = preset.params_model.model_validate(params).model_dump(by_alias=True)
        except ValidationError as e:
            raise MalformedPresetError(preset.id, f"invalid params: {e}") from e

    preset_input = PresetInput(
        params=params,
        config=copy.deepcopy(config or {}),
        style=copy.deepcopy(style or {}),
        clip=copy.deepcopy(clip or {}),
    )

    try:
        raw = preset.transform(preset_input)
    except Exception as e:
        raise MalformedPresetError(preset.id, f"transform raised {type(e).__name__}: {e}") from e

    if raw is None:
        raise MalformedPresetError(preset.id, "transform returned nothing")

    try:
        output = raw if isinstance(raw, PresetOutput) else PresetOutput.model_validate(raw)
        patch = output.to_patch(preset.preset_type)
    except ValidationError as e:
        raise MalformedPresetError(preset.id, f"output does not fit '{preset.preset_type.value}': {e}") from e

    logger.debug(f"Preset {preset.id} produced a '{patch.preset_type.value}' patch for {patch.target_id}")
    return output, patch
