"""
Preset Session
==============
Builds a composition by applying presets one after another, starting from an
empty root. A malformed preset is skipped and the tree built so far is kept.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from mediamotion.composition.models import CompositionRoot, find_duplicate_ids
from mediamotion.errors import MalformedPresetError
from .models import PresetItem, PresetType
from .patches import apply_patch
from .registry import PresetRegistry, default_preset_registry
from .sandbox import run_preset


class PresetSession:
    """
    One editing session over a composition tree.

    Example:
        session = PresetSession()
        session.apply("base-scene", {"backgroundColor": "black"})
        session.apply("media-track", {...})
        root = session.root
    """

    def __init__(
        self,
        registry: Optional[PresetRegistry] = None,
        root: Optional[CompositionRoot] = None,
    ):
        self.registry = registry or default_preset_registry()
        self.root = root or CompositionRoot()
        self.clip: Dict[str, Any] = {}
        self.applied: List[str] = []
        self.skipped: List[str] = []

    def apply(self, preset_id: str, params: Optional[Dict[str, Any]] = None) -> bool:
        """
        Run a preset and patch the session tree with its output.

        Returns:
            True if the tree was patched, False if the preset was skipped

        Raises:
            PresetNotFoundError: ``preset_id`` is not registered
        """
        preset = self.registry.get(preset_id)

        try:
            output, patch = run_preset(
                preset,
                params,
                config=self.root.config.model_dump(by_alias=True, exclude_none=True),
                style=self.root.style,
                clip=self.clip,
            )
            root = apply_patch(self.root, patch, source=preset.id)
        except MalformedPresetError as e:
            logger.warning(f"Skipping preset {preset_id}: {e.reason}")
            self.skipped.append(preset_id)
            return False

        if patch.preset_type == PresetType.FULL and output.options.clip:
            self.clip = output.options.clip

        duplicates = find_duplicate_ids(root.children_data)
        if duplicates:
            logger.warning(f"Preset {preset_id} left duplicate node ids: {duplicates}")

        self.root = root
        self.applied.append(preset_id)
        return True

    def apply_all(self, items: Iterable[Union[PresetItem, Dict[str, Any]]]) -> CompositionRoot:
        """Apply a sequence of presets in order and return the resulting root."""
        for item in items:
            if not isinstance(item, PresetItem):
                item = PresetItem.model_validate(item)
            self.apply(item.preset_id, item.params)

        logger.info(
            f"Preset session: {len(self.applied)} applied, {len(self.skipped)} skipped, "
            f"{len(self.root.children_data)} top-level nodes"
        )
        return self.root
