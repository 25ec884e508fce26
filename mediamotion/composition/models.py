"""
Composition Models
==================
Renderable node tree handed to the Remotion renderer.

Nodes are treated as immutable values: operations return new instances via
``model_copy`` and share every subtree they don't touch.
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, Field


SELF_REFERENCE = "this"
FILL_REFERENCE = "fill"
MEDIA_COMPONENT_IDS = ("AudioAtom", "VideoAtom")


class NodeType(str, Enum):
    """Tagged variant of a renderable node."""
    ATOM = "atom"
    LAYOUT = "layout"
    SCENE = "scene"
    EFFECT = "effect"


class Timing(BaseModel):
    """Timing block under ``context.timing``."""
    duration: Optional[float] = None  # Seconds; None means unresolved
    duration_in_frames: Optional[int] = Field(default=None, alias="durationInFrames")
    fit_duration_to: Optional[Union[str, List[str]]] = Field(default=None, alias="fitDurationTo")

    class Config:
        populate_by_name = True
        extra = "allow"


class NodeContext(BaseModel):
    """Per-node context: timing plus opaque layout boundaries."""
    timing: Optional[Timing] = None
    boundaries: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True
        extra = "allow"


class RenderableNode(BaseModel):
    """A node of the composition tree (atom, layout, scene or effect)."""
    id: str
    type: NodeType
    component_id: str = Field(alias="componentId")
    data: Dict[str, Any] = Field(default_factory=dict)
    context: Optional[NodeContext] = None
    effects: List[Any] = Field(default_factory=list)
    children_data: List["RenderableNode"] = Field(default_factory=list, alias="childrenData")

    class Config:
        populate_by_name = True
        extra = "allow"

    @property
    def timing(self) -> Timing:
        if self.context is None or self.context.timing is None:
            return Timing()
        return self.context.timing

    @property
    def duration(self) -> Optional[float]:
        return self.timing.duration

    @property
    def is_container(self) -> bool:
        return self.type in (NodeType.SCENE, NodeType.LAYOUT)

    @property
    def is_media_atom(self) -> bool:
        return self.type == NodeType.ATOM and self.component_id in MEDIA_COMPONENT_IDS

    def with_duration(self, duration: Optional[float]) -> "RenderableNode":
        """Return a copy with ``context.timing.duration`` set."""
        context = self.context or NodeContext()
        timing = self.timing.model_copy(update={"duration": duration})
        return self.model_copy(update={"context": context.model_copy(update={"timing": timing})})

    def with_children(self, children: List["RenderableNode"]) -> "RenderableNode":
        return self.model_copy(update={"children_data": list(children)})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenderableNode":
        return cls.model_validate(data)


RenderableNode.model_rebuild()


class CompositionConfig(BaseModel):
    """Root-level render configuration."""
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    duration: Optional[float] = None
    fit_duration_to: Optional[Union[str, List[str]]] = Field(default=None, alias="fitDurationTo")

    class Config:
        populate_by_name = True
        extra = "allow"


class CompositionRoot(BaseModel):
    """
    Root of a composition: the only persisted artifact.

    ``style`` is opaque to this engine and forwarded to the renderer untouched.
    """
    children_data: List[RenderableNode] = Field(default_factory=list, alias="childrenData")
    style: Dict[str, Any] = Field(default_factory=dict)
    config: CompositionConfig = Field(default_factory=CompositionConfig)

    class Config:
        populate_by_name = True
        extra = "allow"

    @property
    def is_empty(self) -> bool:
        return not self.children_data

    def with_children(self, children: List[RenderableNode]) -> "CompositionRoot":
        return self.model_copy(update={"children_data": list(children)})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompositionRoot":
        return cls.model_validate(data)


class CompositionMetadata(BaseModel):
    """Result of assembling a composition for the renderer."""
    props: CompositionRoot
    width: int
    height: int
    fps: int
    duration: float
    duration_in_frames: int = Field(alias="durationInFrames")

    class Config:
        populate_by_name = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def iter_nodes(forest: List[RenderableNode]) -> Iterator[RenderableNode]:
    """Yield every node of the forest in pre-order (document order)."""
    for node in forest:
        yield node
        yield from iter_nodes(node.children_data)


def find_duplicate_ids(forest: List[RenderableNode]) -> List[str]:
    """Return ids that occur more than once, in order of first repetition."""
    seen = set()
    duplicates: List[str] = []
    for node in iter_nodes(forest):
        if node.id in seen and node.id not in duplicates:
            duplicates.append(node.id)
        seen.add(node.id)
    return duplicates


def fit_targets(
    node_id: Optional[str],
    fit_duration_to: Optional[Union[str, List[str]]],
) -> List[str]:
    """
    Normalize a ``fitDurationTo`` value into the ids it actually points at.

    ``"this"``, ``"fill"`` and the node's own id are dropped, so an empty
    result means the node has no outward reference.
    """
    if not fit_duration_to:
        return []
    if isinstance(fit_duration_to, str):
        fit_duration_to = [fit_duration_to]
    return [
        target for target in fit_duration_to
        if target and target not in (SELF_REFERENCE, FILL_REFERENCE, node_id)
    ]
