"""
Preset Patch Engine

Applies a ``PresetPatch`` to a composition root. Patching is synchronous and
pure: the input tree is never modified and only the path from the root to the
patched node is rebuilt.
"""

import copy
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from mediamotion.composition.matcher import match, replace_first
from mediamotion.composition.models import CompositionConfig, CompositionRoot, RenderableNode
from mediamotion.errors import MalformedPresetError
from .models import PatchOutput, PresetPatch, PresetType


def deep_merge_data(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge ``incoming`` into a copy of ``existing``.

    Lists are concatenated, dicts are shallow-merged (incoming wins) and
    anything else is overwritten.
    """
    merged = dict(existing)
    for key, value in incoming.items():
        current = merged.get(key)
        if isinstance(value, list) and isinstance(current, list):
            merged[key] = current + value
        elif isinstance(value, dict) and isinstance(current, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def apply_patch(tree: CompositionRoot, patch: PresetPatch, source: str = "patch") -> CompositionRoot:
    """
    Apply ``patch`` and return the new root.

    Args:
        tree: Current composition
        patch: Patch to apply
        source: Name used in errors and logs (usually the preset id)

    Raises:
        MalformedPresetError: the patch carries no payload for its type, or a
            full patch carries an invalid config
    """
    if patch.preset_type == PresetType.FULL:
        return _apply_full(tree, patch.output, source)

    if tree.is_empty:
        logger.debug(f"[{source}] '{patch.preset_type.value}' patch on empty tree ignored")
        return tree

    matches = match(tree.children_data, [patch.target_id])
    if matches:
        target = matches[0]
    else:
        target = tree.children_data[0]
        logger.warning(
            f"[{source}] target '{patch.target_id}' not found; "
            f"falling back to first child '{target.id}'"
        )

    merged = _merge(target, patch, source)
    return tree.with_children(replace_first(tree.children_data, target.id, merged))


def _apply_full(tree: CompositionRoot, output: PatchOutput, source: str) -> CompositionRoot:
    if tree.is_empty:
        config: Dict[str, Any] = {}
        style: Dict[str, Any] = {}
    else:
        config = tree.config.model_dump(by_alias=True, exclude_none=True)
        style = dict(tree.style)
    config.update(output.config or {})
    style.update(output.style or {})

    try:
        validated = CompositionConfig.model_validate(config)
    except ValidationError as e:
        raise MalformedPresetError(source, f"invalid config: {e}") from e

    return tree.model_copy(update={
        "children_data": list(output.children_data or []),
        "config": validated,
        "style": style,
    })


def _wrapper_node(patch: PresetPatch) -> Optional[RenderableNode]:
    """
    The output child standing in for the target itself, if any.

    Older presets wrap their payload in a copy of the target node
    (``output.childrenData[0].id == targetId``) instead of using ``output.id``.
    """
    output = patch.output
    if output.id or not output.children_data:
        return None
    first = output.children_data[0]
    return first if first.id == patch.target_id else None


def _payload(patch: PresetPatch, field: str) -> Any:
    value = getattr(patch.output, field)
    if value is not None:
        return value
    wrapper = _wrapper_node(patch)
    if wrapper is not None and field in wrapper.model_fields_set:
        return getattr(wrapper, field)
    return None


def _merge(target: RenderableNode, patch: PresetPatch, source: str) -> RenderableNode:
    kind = patch.preset_type

    if kind == PresetType.CHILDREN:
        wrapper = _wrapper_node(patch)
        children: List[RenderableNode] = (
            wrapper.children_data if wrapper is not None else list(patch.output.children_data or [])
        )
        data = patch.output.data
        if data is None and wrapper is not None and "data" in wrapper.model_fields_set:
            data = wrapper.data
        if not children and data is None:
            raise MalformedPresetError(source, "children patch has neither childrenData nor data")

        update: Dict[str, Any] = {"children_data": target.children_data + list(children)}
        if data is not None:
            update["data"] = deep_merge_data(target.data, copy.deepcopy(data))
        return target.model_copy(update=update)

    if kind == PresetType.DATA:
        data = _payload(patch, "data")
        if data is None:
            raise MalformedPresetError(source, "data patch has no data")
        return target.model_copy(update={"data": copy.deepcopy(data)})

    if kind == PresetType.CONTEXT:
        context = _payload(patch, "context")
        if context is None:
            raise MalformedPresetError(source, "context patch has no context")
        return target.model_copy(update={"context": context})

    if kind == PresetType.EFFECTS:
        effects = _payload(patch, "effects")
        if effects is None:
            raise MalformedPresetError(source, "effects patch has no effects")
        if not isinstance(effects, list):
            effects = [effects]
        return target.model_copy(update={"effects": copy.deepcopy(effects)})

    raise MalformedPresetError(source, f"unsupported preset type {kind!r}")
