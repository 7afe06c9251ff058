"""
Scene compositor: turns (plan, frame number) into one RGB frame.

Layer order, back to front:
    background pattern -> letterbox (cinematic) -> title word cascade ->
    body entrance -> outro call to action -> platform logo ->
    scene indicator -> progress bar

Everything drawn is a function of the plan, the frame number, fps, the
resolved style, the platform and the frame size. Rendering the same frame
twice gives identical pixels.
"""

import numpy as np
from rich.console import Console

from postreel.fallback_plan import synthesize_plan
from postreel.models import RenderState, Scene, ScenePlan
from postreel.video.backgrounds import draw_background
from postreel.video.branding import (
    draw_letterbox,
    draw_platform_logo,
    draw_progress_bar,
    progress_bar_top,
)
from postreel.video.style import ResolvedStyle, frame_size
from postreel.video.text import (
    SceneLayout,
    compute_scene_layout,
    draw_body,
    draw_call_to_action,
    draw_scene_indicator,
    draw_title,
)

console = Console()

DEFAULT_FPS = 30


def locate_scene(scenes: list[Scene], elapsed: float) -> tuple[int, float]:
    """Find the scene playing at `elapsed` seconds.

    Returns:
        (scene_index, progress) with progress in [0, 1) inside the plan.
        Past the end of the plan the last scene is returned at progress 1.0.
    """
    if not scenes:
        raise ValueError("Cannot locate a scene in an empty plan")
    start = 0.0
    for index, scene in enumerate(scenes):
        end = start + scene.duration
        if elapsed < end:
            progress = (elapsed - start) / scene.duration
            return index, max(0.0, progress)
        start = end
    return len(scenes) - 1, 1.0


def scene_start_frame(scenes: list[Scene], index: int, fps: float) -> int:
    """First frame number belonging to the scene at `index`."""
    start = sum(s.duration for s in scenes[:index])
    return int(np.ceil(start * fps - 1e-9))


class SceneCompositor:
    """Draws frames for one plan. Owned by a single render session."""

    def __init__(
        self,
        plan: ScenePlan | None,
        platform: str,
        style: ResolvedStyle,
        fps: float = DEFAULT_FPS,
        size: tuple[int, int] | None = None,
        config: dict | None = None,
        prompt: str = "",
    ):
        if plan is None or not plan.scenes:
            console.print("[yellow]Scene plan is empty, using the fallback plan.[/yellow]")
            plan = synthesize_plan(prompt)
        if fps <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")

        self.plan = plan
        self.platform = platform
        self.style = style
        self.fps = fps
        self.size = size or frame_size(platform)
        self.config = config or {}
        self._layouts: dict[int, SceneLayout] = {}
        self._scene_starts = [
            scene_start_frame(plan.scenes, i, fps) for i in range(len(plan.scenes))
        ]

    @property
    def total_frames(self) -> int:
        return max(1, round(self.plan.total_duration * self.fps))

    def state_for(self, frame: int) -> RenderState:
        index, progress = locate_scene(self.plan.scenes, frame / self.fps)
        return RenderState(
            frame=frame,
            total_frames=self.total_frames,
            scene_index=index,
            scene_progress=progress,
        )

    def layout_for(self, index: int) -> SceneLayout:
        if index not in self._layouts:
            self._layouts[index] = compute_scene_layout(
                self.plan.scenes[index], self.size, self.style
            )
        return self._layouts[index]

    def render_frame(self, frame: int, state: RenderState | None = None) -> np.ndarray:
        """Composite one frame as an (height, width, 3) uint8 array."""
        state = state or self.state_for(frame)
        index = state.scene_index
        scene = self.plan.scenes[index]
        layout = self.layout_for(index)
        local_frame = frame - self._scene_starts[index]

        img = draw_background(
            index, frame, self.fps, self.size, self.style,
            self.config.get("particles"),
        )
        if self.style.preset.letterbox:
            img = draw_letterbox(img)
        img = draw_title(img, layout, local_frame, self.style)
        img = draw_body(img, layout, state.scene_progress, self.style)
        img = draw_call_to_action(img, layout, state.scene_progress, self.style)

        branding = self.config.get("branding", {}) or {}
        if branding.get("logo", True):
            img = draw_platform_logo(img, self.platform, frame)

        bar_config = self.config.get("progress_bar", {}) or {}
        bar_top = progress_bar_top(self.size[1], bar_config)
        if branding.get("scene_indicator", True):
            img = draw_scene_indicator(
                img, layout, scene, self.style, self.size[1] - bar_top + 16
            )
        if bar_config.get("enabled", True):
            img = draw_progress_bar(img, frame, state.total_frames, self.style, bar_config)

        return np.asarray(img, dtype=np.uint8)
