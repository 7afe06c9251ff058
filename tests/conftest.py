"""
Pytest configuration and fixtures for postreel tests.
"""
import tempfile
from pathlib import Path

import pytest

from postreel.models import Scene, ScenePlan
from postreel.video.compositor import SceneCompositor
from postreel.video.style import resolve_style

# Small canvas so per-frame drawing stays fast
SMALL_SIZE = (128, 72)
SMALL_FPS = 10


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    """Keep tests away from the hosted plan producer."""
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


@pytest.fixture
def sample_plan_data():
    """Scene plan JSON as the plan producer returns it."""
    return {
        "scenes": [
            {
                "sceneId": 1,
                "duration": 1.0,
                "script": "Five AI tools",
                "visualDescription": "Tools that save hours every week",
                "transition": "fade",
            },
            {
                "sceneId": 2,
                "duration": 1.5,
                "script": "Tool one writes code",
                "visualDescription": "An assistant in your editor",
                "transition": "slide",
            },
            {
                "sceneId": 3,
                "duration": 1.0,
                "script": "Thanks for watching!",
                "visualDescription": "Follow for more!",
                "transition": "fade",
            },
        ],
        "totalDuration": 3.5,
        "musicTrack": "upbeat electronic",
        "visualStyle": "bold",
        "colorGrading": "warm",
        "editingStyle": "fast cuts",
    }


@pytest.fixture
def sample_plan(sample_plan_data):
    return ScenePlan.from_dict(sample_plan_data)


@pytest.fixture
def tiny_plan():
    """Two half-second scenes: 10 frames at SMALL_FPS."""
    return ScenePlan(scenes=[
        Scene(scene_id=1, duration=0.5, script="Hello there", visual_description="Intro"),
        Scene(scene_id=2, duration=0.5, script="Thanks for watching!", visual_description="Bye"),
    ])


@pytest.fixture
def youtube_style():
    return resolve_style("YouTube")


@pytest.fixture
def compositor(tiny_plan, youtube_style):
    return SceneCompositor(
        tiny_plan, "YouTube", youtube_style, fps=SMALL_FPS, size=SMALL_SIZE
    )


class FakeWriter:
    """Stands in for the ffmpeg writer; records frames, writes bytes on close."""

    instances = []

    def __init__(self, path, size, fps, codec=None, bitrate=None):
        self.path = Path(path)
        self.size = size
        self.fps = fps
        self.codec = codec
        self.bitrate = bitrate
        self.frames = []
        self.closed = False
        FakeWriter.instances.append(self)

    def write_frame(self, pixels):
        assert not self.closed
        self.frames.append(pixels)

    def close(self):
        self.path.write_bytes(b"fake-video" * max(1, len(self.frames)))
        self.closed = True


@pytest.fixture
def fake_writer():
    """Writer factory class; the created writers are in FakeWriter.instances."""
    FakeWriter.instances = []
    return FakeWriter
