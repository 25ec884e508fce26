"""
Composition Assembler
=====================
Entry point for the renderer and the preview player: resolves durations and
derives the final frame count and dimensions of a composition.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from config import settings
from .media_probe import MediaProbe, create_media_probe
from .models import CompositionMetadata, CompositionRoot, RenderableNode, fit_targets
from .registry import ComponentRegistry
from .timing import calculate_duration, resolve_durations, seconds_to_frames


class CompositionAssembler:
    """
    Assembles a composition root into render metadata.

    Each ``assemble`` call owns its input value, so independent assemblies
    can run concurrently on the same assembler.
    """

    def __init__(
        self,
        probe: Optional[MediaProbe] = None,
        registry: Optional[ComponentRegistry] = None,
    ):
        """
        Initialize assembler.

        Args:
            probe: Media probe (default: configured backend)
            registry: Component registry whose default data fills missing
                node data keys; no defaults are applied when omitted
        """
        self.probe = probe or create_media_probe()
        self.registry = registry

    async def assemble(
        self,
        root: Union[CompositionRoot, Dict[str, Any]],
        signal: Optional[asyncio.Event] = None,
    ) -> CompositionMetadata:
        """
        Resolve durations and compute render metadata.

        Duration precedence: the root's ``fitDurationTo`` reference, then
        ``config.duration``, then the configured default.

        Raises:
            AssemblyAborted: ``signal`` fired during a probe
        """
        if isinstance(root, dict):
            root = CompositionRoot.from_dict(root)

        if self.registry is not None:
            root = root.with_children(self._apply_defaults(root.children_data))

        resolved = await resolve_durations(root, self.probe, signal)

        config = root.config
        fit_duration = None
        targets = fit_targets(None, config.fit_duration_to)
        if targets:
            fit_duration = await calculate_duration(resolved.children_data, targets, self.probe, signal)

        if fit_duration is not None:
            duration = fit_duration
        elif config.duration is not None:
            duration = config.duration
        else:
            duration = settings.DEFAULT_DURATION_SECONDS

        fps = config.fps or settings.DEFAULT_FPS
        width = config.width or settings.DEFAULT_WIDTH
        height = config.height or settings.DEFAULT_HEIGHT
        duration_in_frames = seconds_to_frames(duration, fps)

        logger.info(
            f"Assembled composition: {width}x{height} @ {fps}fps, "
            f"{duration:.2f}s ({duration_in_frames} frames)"
        )

        return CompositionMetadata(
            props=resolved,
            width=width,
            height=height,
            fps=fps,
            duration=duration,
            duration_in_frames=duration_in_frames,
        )

    def _apply_defaults(self, forest: List[RenderableNode]) -> List[RenderableNode]:
        """Fill missing top-level data keys from each component's defaults."""
        updated = []
        for node in forest:
            spec = self.registry.resolve(node.component_id)
            if spec is None:
                logger.debug(f"No registered component for '{node.component_id}' ({node.id})")
                data = node.data
            else:
                data = {**copy.deepcopy(spec.default_data), **node.data}

            updated.append(node.model_copy(update={
                "data": data,
                "children_data": self._apply_defaults(node.children_data),
            }))
        return updated


async def assemble(
    root: Union[CompositionRoot, Dict[str, Any]],
    probe: Optional[MediaProbe] = None,
    signal: Optional[asyncio.Event] = None,
) -> CompositionMetadata:
    """Assemble ``root`` with a one-off assembler."""
    return await CompositionAssembler(probe=probe).assemble(root, signal=signal)
