"""
Preset Registry
===============
Built-in presets and the lookup table the session resolves preset ids from.
"""

from typing import Any, Dict, List, Literal, Optional

from loguru import logger
from pydantic import BaseModel, Field

from mediamotion.errors import PresetNotFoundError
from .models import Preset, PresetInput, PresetMetadata, PresetType


BASE_SCENE_ID = "BaseScene"


# =============================================================================
# BASE SCENE (full)
# =============================================================================

class ClipParams(BaseModel):
    start: Optional[float] = None
    duration: Optional[float] = None


class BaseSceneParams(BaseModel):
    background_color: str = Field(default="black", alias="backgroundColor")
    duration: Optional[float] = None
    fit_duration_to: Optional[str] = Field(default=None, alias="fitDurationTo")
    aspect_ratio: Optional[str] = Field(default=None, alias="aspectRatio")
    clip: Optional[ClipParams] = None

    class Config:
        populate_by_name = True


def _dimensions(aspect_ratio: Optional[str]) -> tuple:
    width_ratio, height_ratio = (16, 9)
    if aspect_ratio:
        width_ratio, height_ratio = (float(part) for part in aspect_ratio.split(":"))
    ratio = width_ratio / height_ratio
    base_width = 1920 if ratio > 1 else 1080
    return base_width, round(base_width / ratio)


def base_scene(preset_input: PresetInput) -> Dict[str, Any]:
    """Full-tree preset: one background layout that the rest of the presets attach to."""
    params = preset_input.params
    clip = params.get("clip") or {}
    clip_duration = clip.get("duration")
    fit_duration_to = params.get("fitDurationTo")
    width, height = _dimensions(params.get("aspectRatio"))

    if clip_duration and clip_duration > 0:
        scene_duration = clip_duration
    elif params.get("duration") and params["duration"] > 0:
        scene_duration = params["duration"]
    else:
        scene_duration = 20

    timing: Dict[str, Any] = {"start": -(clip.get("start") or 0)}
    if not params.get("clip"):
        timing["duration"] = scene_duration
    config: Dict[str, Any] = {"width": width, "height": height, "fps": 30, "duration": scene_duration}
    if not (clip_duration and clip_duration > 0):
        timing["fitDurationTo"] = fit_duration_to or "this"
        config["fitDurationTo"] = BASE_SCENE_ID

    return {
        "output": {
            "childrenData": [
                {
                    "id": BASE_SCENE_ID,
                    "componentId": "BaseLayout",
                    "type": "layout" if fit_duration_to else "scene",
                    "data": {
                        "containerProps": {
                            "className": "flex items-center justify-center absolute inset-0",
                            "style": {"backgroundColor": params.get("backgroundColor", "black")},
                        },
                        "childrenProps": [],
                    },
                    "context": {"timing": timing},
                    "childrenData": [],
                }
            ],
            "config": config,
        },
        "options": {"clip": {"start": clip.get("start"), "duration": clip_duration}},
    }


# =============================================================================
# MEDIA TRACK (children)
# =============================================================================

class MediaItem(BaseModel):
    src: str
    type: Literal["video", "image", "audio"]
    fit: Optional[Literal["cover", "contain", "fill", "none", "scale-down"]] = None
    duration: Optional[float] = None


class MediaTrackParams(BaseModel):
    media_items: List[MediaItem] = Field(alias="mediaItems", min_length=1)
    track_name: str = Field(alias="trackName")
    track_type: Literal["sequence", "aligned", "random"] = Field(default="sequence", alias="trackType")
    track_duration: Optional[float] = Field(default=20, alias="trackDuration")
    track_fit_duration_to: Optional[str] = Field(default=None, alias="trackFitDurationTo")
    attach_to: str = Field(default=BASE_SCENE_ID, alias="attachTo")

    class Config:
        populate_by_name = True


_MEDIA_COMPONENTS = {"video": "VideoAtom", "image": "ImageAtom", "audio": "AudioAtom"}


def media_track(preset_input: PresetInput) -> Dict[str, Any]:
    """Children preset: a track of media atoms appended to the base scene."""
    params = preset_input.params
    track_name = params["trackName"]

    atoms = []
    for index, item in enumerate(params["mediaItems"]):
        timing: Dict[str, Any] = {}
        if item.get("duration"):
            timing["duration"] = item["duration"]
        elif item["type"] == "image":
            timing["duration"] = 5
        atoms.append({
            "id": f"{track_name}-{item['type']}-{index}",
            "componentId": _MEDIA_COMPONENTS[item["type"]],
            "type": "atom",
            "data": {
                "src": item["src"],
                "className": "w-full h-auto object-cover bg-black",
                "fit": item.get("fit") or "cover",
            },
            "context": {"timing": timing},
        })

    if params["trackType"] in ("aligned", "random"):
        track_type = "layout"
        track_timing = {
            "start": 0,
            "duration": params.get("trackDuration"),
            "fitDurationTo": params.get("trackFitDurationTo") or "this",
        }
    else:
        track_type = "scene"
        track_timing = {}

    return {
        "output": {
            "id": params["attachTo"],
            "childrenData": [
                {
                    "id": track_name,
                    "componentId": "BaseLayout",
                    "type": track_type,
                    "data": {},
                    "context": {"timing": track_timing},
                    "childrenData": atoms,
                }
            ],
        },
        "options": {"attachedToId": params["attachTo"]},
    }


class PresetRegistry:
    """Lookup table of presets by id."""

    def __init__(self):
        self._presets: Dict[str, Preset] = {}

    def register(self, preset: Preset) -> None:
        if preset.id in self._presets:
            logger.debug(f"Replacing preset registration: {preset.id}")
        self._presets[preset.id] = preset

    def get(self, preset_id: str) -> Preset:
        try:
            return self._presets[preset_id]
        except KeyError:
            raise PresetNotFoundError(f"Preset '{preset_id}' not found") from None

    def list_metadata(self) -> List[PresetMetadata]:
        return [preset.metadata for preset in self._presets.values()]

    def __contains__(self, preset_id: str) -> bool:
        return preset_id in self._presets


def default_preset_registry() -> PresetRegistry:
    """Registry holding the built-in presets."""
    registry = PresetRegistry()
    registry.register(Preset(
        metadata=PresetMetadata(
            id="base-scene",
            title="Base Scene",
            description="A base scene with a background color",
            preset_type=PresetType.FULL,
            tags=["base", "scene"],
            default_input_params={"backgroundColor": "black", "duration": 20},
        ),
        transform=base_scene,
        params_model=BaseSceneParams,
    ))
    registry.register(Preset(
        metadata=PresetMetadata(
            id="media-track",
            title="Media Track",
            description="Tracks multiple media items together in sequence",
            preset_type=PresetType.CHILDREN,
            tags=["media", "track", "sequence"],
            default_input_params={
                "mediaItems": [
                    {
                        "src": "http://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerEscapes.mp4",
                        "type": "video",
                        "fit": "cover",
                    },
                ],
                "trackName": "media-track",
                "trackType": "sequence",
            },
        ),
        transform=media_track,
        params_model=MediaTrackParams,
    ))
    return registry
