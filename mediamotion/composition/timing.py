"""
Duration Resolver

Computes ``context.timing.duration`` for every node of a composition.

Pass 1 walks non-container nodes post-order: media atoms get their natural
duration from the probe, and nodes that fit to a reference resolve it against
their own children. Pass 2 walks scenes and layouts post-order, so nested
containers settle before their parents aggregate them.

Probe failures never escape: the affected duration stays ``None`` and
contributes nothing upward. Only an abort fails the whole resolve.
"""

import asyncio
import math
from typing import List, Optional, Union

from loguru import logger

from mediamotion.errors import AssemblyAborted
from .matcher import match
from .media_probe import MediaProbe
from .models import CompositionRoot, RenderableNode, fit_targets


async def probe_natural_duration(
    node: RenderableNode,
    probe: MediaProbe,
    signal: Optional[asyncio.Event] = None,
) -> Optional[float]:
    """Natural duration of a media atom's ``src``, or None if it can't be probed."""
    src = node.data.get("src")
    if not src:
        logger.warning(f"Duration unresolved for '{node.id}': no src")
        return None

    try:
        result = await probe.probe(src, signal)
    except AssemblyAborted:
        raise
    except Exception as e:
        logger.warning(f"Duration unresolved for '{node.id}' ({src}): {e}")
        return None

    return result.duration_seconds


def effective_media_duration(natural: float, data: dict) -> float:
    """
    Playable length of a trimmed, rate-adjusted media source.

    ``startFrom`` defaults to 0, ``endAt`` to the natural duration and
    ``playbackRate`` to 1.
    """
    start_from = data.get("startFrom") or 0
    end_at = data.get("endAt")
    if end_at is None:
        end_at = natural

    playback_rate = data.get("playbackRate") or 1
    if playback_rate <= 0:
        logger.warning(f"Ignoring non-positive playbackRate {playback_rate}")
        playback_rate = 1

    return (natural - start_from - (natural - end_at)) / playback_rate


async def calculate_duration(
    children: List[RenderableNode],
    fit_duration_to: Union[str, List[str]],
    probe: MediaProbe,
    signal: Optional[asyncio.Event] = None,
) -> Optional[float]:
    """
    Duration of the single child (at any depth) that ``fit_duration_to`` names.

    Only exactly one match is defined: a media atom is probed and trimmed, a
    scene or layout contributes its already-resolved duration. Anything else
    leaves the duration unresolved (None).
    """
    targets = [fit_duration_to] if isinstance(fit_duration_to, str) else list(fit_duration_to)
    matches = match(children, targets)

    if not matches:
        logger.warning(f"fitDurationTo {targets} matched nothing; leaving duration unresolved")
        return None
    if len(matches) > 1:
        logger.warning(
            f"fitDurationTo {targets} matched {len(matches)} nodes; leaving duration unresolved"
        )
        return None

    target = matches[0]
    if target.is_media_atom:
        natural = await probe_natural_duration(target, probe, signal)
        if natural is None:
            return None
        return effective_media_duration(natural, target.data)

    if target.is_container:
        return target.duration

    logger.debug(f"Cannot fit to '{target.id}' ({target.type.value}/{target.component_id})")
    return None


# =============================================================================
# PASS 1: atoms and other non-container nodes
# =============================================================================

async def resolve_media_durations(
    forest: List[RenderableNode],
    probe: MediaProbe,
    signal: Optional[asyncio.Event] = None,
) -> List[RenderableNode]:
    resolved = []
    for node in forest:
        resolved.append(await _resolve_media_node(node, probe, signal))
    return resolved


async def _resolve_media_node(
    node: RenderableNode,
    probe: MediaProbe,
    signal: Optional[asyncio.Event],
) -> RenderableNode:
    updated = node
    if node.children_data:
        updated = node.with_children(await resolve_media_durations(node.children_data, probe, signal))

    if node.is_container:
        return updated

    targets = fit_targets(node.id, node.timing.fit_duration_to)

    if node.is_media_atom:
        if targets:
            # The node's own duration comes from its reference; expose the
            # source length to whoever consumes it.
            natural = await probe_natural_duration(node, probe, signal)
            if natural is not None:
                updated = updated.model_copy(update={"data": {**updated.data, "srcDuration": natural}})
        elif node.duration is None:
            updated = updated.with_duration(await probe_natural_duration(node, probe, signal))

    if targets:
        duration = await calculate_duration(updated.children_data, targets, probe, signal)
        if duration is not None:
            updated = updated.with_duration(duration)

    return updated


# =============================================================================
# PASS 2: scenes and layouts
# =============================================================================

async def resolve_scene_durations(
    forest: List[RenderableNode],
    probe: MediaProbe,
    signal: Optional[asyncio.Event] = None,
) -> List[RenderableNode]:
    resolved = []
    for node in forest:
        resolved.append(await _resolve_scene_node(node, probe, signal))
    return resolved


async def _resolve_scene_node(
    node: RenderableNode,
    probe: MediaProbe,
    signal: Optional[asyncio.Event],
) -> RenderableNode:
    updated = node
    if node.children_data:
        updated = node.with_children(await resolve_scene_durations(node.children_data, probe, signal))

    if not node.is_container:
        return updated

    targets = fit_targets(node.id, node.timing.fit_duration_to)
    if targets:
        duration = await calculate_duration(updated.children_data, targets, probe, signal)
        if duration is not None:
            updated = updated.with_duration(duration)
        return updated

    if node.duration is not None:
        return updated

    total = sum(child.duration or 0 for child in updated.children_data)
    return updated.with_duration(total)


async def resolve_durations(
    root: CompositionRoot,
    probe: MediaProbe,
    signal: Optional[asyncio.Event] = None,
) -> CompositionRoot:
    """Run both passes and return a new root. The input root is not modified."""
    children = await resolve_media_durations(root.children_data, probe, signal)
    children = await resolve_scene_durations(children, probe, signal)
    return root.with_children(children)


def seconds_to_frames(seconds: float, fps: int) -> int:
    """
    Convert seconds to frames.

    Rounds half-up like ``round(seconds * fps)`` but never returns fewer than
    one frame, since a zero-frame composition cannot be rendered.
    """
    return max(1, int(math.floor(seconds * fps + 0.5)))
