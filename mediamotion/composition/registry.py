"""
Component Registry
==================
Maps a symbolic componentId to its renderer name and default data.

Components are configuration, not code: the renderer itself lives in the
Remotion project and is referred to by name only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger


@dataclass
class ComponentSpec:
    """Registry entry for one componentId."""
    component_id: str
    renderer: str
    default_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "componentId": self.component_id,
            "renderer": self.renderer,
            "defaultData": dict(self.default_data),
        }


class ComponentRegistry:
    """Lookup table from componentId to ``ComponentSpec``."""

    def __init__(self):
        self._components: Dict[str, ComponentSpec] = {}

    def register(
        self,
        component_id: str,
        default_data: Optional[Dict[str, Any]] = None,
        renderer: Optional[str] = None,
    ) -> ComponentSpec:
        """Register (or replace) a component. The renderer defaults to the componentId."""
        if component_id in self._components:
            logger.debug(f"Replacing component registration: {component_id}")
        spec = ComponentSpec(
            component_id=component_id,
            renderer=renderer or component_id,
            default_data=dict(default_data or {}),
        )
        self._components[component_id] = spec
        return spec

    def resolve(self, component_id: str) -> Optional[ComponentSpec]:
        return self._components.get(component_id)

    def component_ids(self) -> List[str]:
        return list(self._components)

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._components


def default_registry() -> ComponentRegistry:
    """Registry with the stock Remotion components."""
    registry = ComponentRegistry()
    registry.register("BaseLayout", {"containerProps": {}, "childrenProps": []})
    registry.register("AudioAtom", {"volume": 1, "playbackRate": 1})
    registry.register("VideoAtom", {"fit": "cover", "muted": False, "playbackRate": 1})
    registry.register("ImageAtom", {"fit": "cover"})
    registry.register("TextAtom", {"text": ""})
    registry.register("LottieAtom", {"loop": True, "playbackRate": 1})
    registry.register("generic", {"animations": []}, renderer="UniversalEffect")
    return registry
