"""
Render pipeline glue: request -> plan -> style -> compositor -> session.
"""

from typing import Callable

from postreel.config import video_config
from postreel.models import RenderRequest, StyleProfile
from postreel.plan_generator import resolve_plan
from postreel.video.compositor import DEFAULT_FPS, SceneCompositor
from postreel.video.encoder import (
    DEFAULT_BITRATE,
    DEFAULT_CODEC,
    DEFAULT_CONTAINER,
    RenderSession,
)
from postreel.video.style import frame_size, resolve_style


def style_override_for(request: RenderRequest, config: dict | None) -> StyleProfile | None:
    """The request's own override, else the trained profile for its platform."""
    if request.style_override is not None:
        return request.style_override
    profiles = (config or {}).get("style_profiles") or {}
    return StyleProfile.from_dict(profiles.get(request.platform))


def build_compositor(request: RenderRequest, config: dict | None = None) -> SceneCompositor:
    video = video_config(config)
    plan = resolve_plan(request, config)
    style = resolve_style(
        request.platform, style_override_for(request, config), plan.visual_style
    )
    return SceneCompositor(
        plan,
        request.platform,
        style,
        fps=video.get("fps", DEFAULT_FPS),
        size=frame_size(request.platform, float(video.get("scale", 1.0))),
        config=video,
        prompt=request.prompt,
    )


def build_session(
    request: RenderRequest,
    config: dict | None = None,
    is_connected: Callable[[str], bool] | None = None,
    writer_factory: Callable | None = None,
) -> RenderSession:
    """Validate a request and wire up a ready-to-run render session.

    Args:
        request: What to render.
        config: Full config dict (``video``, ``planner``, ``style_profiles``).
        is_connected: Optional platform capability check.
        writer_factory: Optional replacement for the moviepy writer.

    Raises:
        ValueError: The request is missing a platform or a prompt.
        PlatformNotConnected: The capability check rejected the platform.
    """
    request.validate(is_connected)
    video = video_config(config)
    return RenderSession(
        build_compositor(request, config),
        prompt=request.prompt,
        codec=video.get("codec", DEFAULT_CODEC),
        bitrate=video.get("bitrate", DEFAULT_BITRATE),
        container=video.get("container", DEFAULT_CONTAINER),
        writer_factory=writer_factory,
        temp_dir=video.get("temp_dir"),
    )
