"""
Data model for scene plans, style overrides and render requests.

Plans and style overrides arrive as JSON from the plan producer (camelCase
keys). The from_dict() constructors accept that shape; to_dict() emits it
back so a resolved plan can be printed or stored by the caller.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

from postreel.errors import PlatformNotConnected

PLATFORMS = ("YouTube", "TikTok", "Instagram", "Snapchat")

# Platforms that need an explicit account connection before posting
CONNECTION_REQUIRED = {"Snapchat"}


def _parse_duration(value: Any, label: str) -> float:
    try:
        duration = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label}: duration must be a number, got {value!r}")
    if not math.isfinite(duration) or duration <= 0:
        raise ValueError(f"{label}: duration must be > 0, got {value!r}")
    return duration


def _require_object(data: Any, label: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{label} must be a JSON object, got {type(data).__name__}")
    return data


def _text_or_none(value: Any) -> str | None:
    """Keep a style tag or path only when it is a non-empty string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


@dataclass(frozen=True)
class Scene:
    """One timed segment of a video plan."""
    scene_id: int | str
    duration: float                     # seconds, > 0
    script: str = ""                    # on-screen title text
    visual_description: str = ""        # body text
    transition: str = "fade"
    visual_style: str | None = None     # per-scene style override
    audio_elements: tuple = ()
    text_overlays: tuple = ()

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Scene":
        data = _require_object(data, f"Scene {index + 1}")
        scene_id = data.get("sceneId", data.get("id"))
        if scene_id is None or scene_id == "":
            scene_id = index + 1
        return cls(
            scene_id=scene_id,
            duration=_parse_duration(data.get("duration"), f"Scene {scene_id}"),
            script=str(data.get("script") or data.get("text") or ""),
            visual_description=str(data.get("visualDescription") or ""),
            transition=str(data.get("transition") or "fade"),
            visual_style=_text_or_none(data.get("visualStyle")),
            audio_elements=tuple(data.get("audioElements") or ()),
            text_overlays=tuple(data.get("textOverlays") or ()),
        )

    def to_dict(self) -> dict:
        out = {
            "sceneId": self.scene_id,
            "duration": self.duration,
            "script": self.script,
            "visualDescription": self.visual_description,
            "transition": self.transition,
        }
        if self.visual_style:
            out["visualStyle"] = self.visual_style
        if self.audio_elements:
            out["audioElements"] = list(self.audio_elements)
        if self.text_overlays:
            out["textOverlays"] = list(self.text_overlays)
        return out


@dataclass
class ScenePlan:
    """Ordered scenes plus plan-wide style directives.

    total_duration is producer-supplied; when it is missing or not
    positive it is taken as the sum of the scene durations.
    """
    scenes: list[Scene] = field(default_factory=list)
    total_duration: float = 0.0
    visual_style: str = "default"
    music_track: str | None = None
    color_grading: str | None = None
    editing_style: str | None = None

    def __post_init__(self):
        try:
            total = float(self.total_duration or 0.0)
        except (TypeError, ValueError):
            total = 0.0
        if not math.isfinite(total) or total <= 0:
            total = sum(s.duration for s in self.scenes)
        self.total_duration = total

    @property
    def scenes_duration(self) -> float:
        return sum(s.duration for s in self.scenes)

    @classmethod
    def from_dict(cls, data: dict) -> "ScenePlan":
        """Build a plan from the producer's JSON object."""
        data = _require_object(data, "Scene plan")
        raw_scenes = data.get("scenes") or []
        if not isinstance(raw_scenes, list):
            raise ValueError("scenes must be a list")
        scenes = [Scene.from_dict(s, i) for i, s in enumerate(raw_scenes)]
        return cls(
            scenes=scenes,
            total_duration=data.get("totalDuration") or 0.0,
            visual_style=(
                _text_or_none(data.get("visualStyle"))
                or _text_or_none(data.get("style"))
                or "default"
            ),
            music_track=data.get("musicTrack"),
            color_grading=data.get("colorGrading"),
            editing_style=data.get("editingStyle"),
        )

    def to_dict(self) -> dict:
        return {
            "scenes": [s.to_dict() for s in self.scenes],
            "totalDuration": self.total_duration,
            "musicTrack": self.music_track,
            "visualStyle": self.visual_style,
            "colorGrading": self.color_grading,
            "editingStyle": self.editing_style,
        }


@dataclass
class StyleProfile:
    """Style override, either supplied with the request or trained per platform."""
    visual_style: str | None = None     # cinematic / bold / sleek / high-contrast / default
    color_palette: list[str] = field(default_factory=list)
    text_animations: list[str] = field(default_factory=list)
    custom_font: str | None = None
    color_grading: str | None = None
    camera_movements: list[str] = field(default_factory=list)
    transitions: list[str] = field(default_factory=list)
    pacing: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "StyleProfile | None":
        if not data:
            return None
        data = _require_object(data, "Style override")
        return cls(
            visual_style=_text_or_none(data.get("visualStyle")),
            color_palette=_string_list(data.get("colorPalette")),
            text_animations=_string_list(data.get("textAnimations")),
            custom_font=_text_or_none(data.get("customFont")),
            color_grading=data.get("colorGrading"),
            camera_movements=_string_list(data.get("cameraMovements")),
            transitions=_string_list(data.get("transitions")),
            pacing=data.get("pacing"),
        )


def default_connection_policy(connected: Iterable[str]) -> Callable[[str], bool]:
    """Dashboard policy: Snapchat must be connected, the rest are assumed connected."""
    connected = set(connected)

    def is_connected(platform: str) -> bool:
        return platform not in CONNECTION_REQUIRED or platform in connected

    return is_connected


@dataclass
class RenderRequest:
    """Everything needed to start one render session."""
    platform: str
    prompt: str = ""
    scene_plan: ScenePlan | None = None
    style_override: StyleProfile | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RenderRequest":
        data = _require_object(data, "Render request")
        plan_data = data.get("scenePlan")
        return cls(
            platform=str(data.get("platform") or ""),
            prompt=str(data.get("prompt") or ""),
            scene_plan=ScenePlan.from_dict(plan_data) if plan_data else None,
            style_override=StyleProfile.from_dict(data.get("styleOverride")),
        )

    @property
    def has_plan(self) -> bool:
        return self.scene_plan is not None and bool(self.scene_plan.scenes)

    def validate(self, is_connected: Callable[[str], bool] | None = None) -> None:
        """Reject requests that cannot produce a render.

        Args:
            is_connected: Optional capability check for the target platform.
                Platform-connection state belongs to the caller; nothing is
                checked when this is None.
        """
        if not self.platform:
            raise ValueError("A target platform is required.")
        if not self.prompt.strip() and not self.has_plan:
            raise ValueError("A prompt is required when no scene plan is supplied.")
        if is_connected is not None and not is_connected(self.platform):
            raise PlatformNotConnected(self.platform)


@dataclass
class RenderState:
    """Per-frame cursor owned by a single render session."""
    frame: int = 0
    total_frames: int = 0
    scene_index: int = 0
    scene_progress: float = 0.0


@dataclass
class EncodedArtifact:
    """Finished video bytes plus a revocable playback handle.

    The handle is a temp file written by the encoder. The owner must call
    release() once preview or download is done.
    """
    data: bytes
    mime_type: str
    filename: str
    path: Path | None = None
    _released: bool = field(default=False, repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def url(self) -> str:
        """Dereferenceable file:// URL for the playback handle."""
        if self._released or self.path is None:
            raise ValueError(f"Playback handle for {self.filename} has been released")
        return self.path.resolve().as_uri()

    def save(self, output_path: Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.data)
        return output_path

    def release(self) -> None:
        """Revoke the playback handle. Safe to call more than once."""
        if self._released:
            return
        if self.path is not None:
            self.path.unlink(missing_ok=True)
        self._released = True

    def __enter__(self) -> "EncodedArtifact":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
