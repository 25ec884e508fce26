"""
Composition Service
===================
Scene-graph model, reference matching, duration resolution and assembly of
Remotion compositions.
"""

from .assembler import CompositionAssembler, assemble
from .matcher import match, match_by_query, replace_first
from .media_probe import (
    FFprobeMediaProbe,
    HttpMediaInfoProbe,
    MediaDuration,
    MediaProbe,
    create_media_probe,
)
from .models import (
    CompositionConfig,
    CompositionMetadata,
    CompositionRoot,
    NodeContext,
    NodeType,
    RenderableNode,
    Timing,
    find_duplicate_ids,
    iter_nodes,
)
from .registry import ComponentRegistry, ComponentSpec, default_registry
from .timing import calculate_duration, resolve_durations

__all__ = [
    "CompositionAssembler",
    "assemble",
    "match",
    "match_by_query",
    "replace_first",
    "FFprobeMediaProbe",
    "HttpMediaInfoProbe",
    "MediaDuration",
    "MediaProbe",
    "create_media_probe",
    "CompositionConfig",
    "CompositionMetadata",
    "CompositionRoot",
    "NodeContext",
    "NodeType",
    "RenderableNode",
    "Timing",
    "find_duplicate_ids",
    "iter_nodes",
    "ComponentRegistry",
    "ComponentSpec",
    "default_registry",
    "calculate_duration",
    "resolve_durations",
]
