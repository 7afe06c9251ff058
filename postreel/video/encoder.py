"""
Render session: drives the compositor frame by frame into a video writer.

A RenderSession owns its compositor, its per-frame state and its writer.
Frames are drawn and written strictly in order, one at a time. A session
renders once; build a new one for another render.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Callable, Iterator

import numpy as np
from moviepy.video.io.ffmpeg_writer import FFMPEG_VideoWriter
from rich.console import Console

from postreel.errors import EncodingFailure, RenderCancelled
from postreel.models import EncodedArtifact, RenderState
from postreel.video.compositor import SceneCompositor

console = Console()

DEFAULT_CODEC = "libvpx-vp9"
DEFAULT_BITRATE = "2000k"
DEFAULT_CONTAINER = "webm"

MIME_TYPES = {
    "webm": "video/webm",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
}


def artifact_filename(platform: str, prompt: str, ext: str = DEFAULT_CONTAINER) -> str:
    """Download name: '{platform}-{first 20 prompt chars, slugged}.{ext}'."""
    slug = re.sub(r"[^a-zA-Z0-9]", "-", (prompt or "")[:20]).lower()
    return f"{platform.lower()}-{slug}.{ext}"


def moviepy_writer(
    path: str,
    size: tuple[int, int],
    fps: float,
    codec: str = DEFAULT_CODEC,
    bitrate: str | None = DEFAULT_BITRATE,
):
    """Open moviepy's ffmpeg pipe writer for raw RGB frames."""
    return FFMPEG_VideoWriter(
        path,
        size,
        fps,
        codec=codec,
        bitrate=bitrate,
        pixel_format="yuv420p",
    )


class RenderSession:
    """One render of one plan into one artifact."""

    def __init__(
        self,
        compositor: SceneCompositor,
        prompt: str = "",
        codec: str = DEFAULT_CODEC,
        bitrate: str | None = DEFAULT_BITRATE,
        container: str = DEFAULT_CONTAINER,
        writer_factory: Callable | None = None,
        temp_dir: str | Path | None = None,
    ):
        self.compositor = compositor
        self.prompt = prompt
        self.codec = codec
        self.bitrate = bitrate
        self.container = container.lstrip(".").lower()
        self.writer_factory = writer_factory or moviepy_writer
        self.temp_dir = temp_dir

        self.state: RenderState | None = None
        self._writer = None
        self._path: Path | None = None
        self._started = False
        self._cancelled = False

    @property
    def total_frames(self) -> int:
        return self.compositor.total_frames

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop before the next frame is drawn. Partial output is discarded."""
        self._cancelled = True

    # ------------------------------------------------------------------
    # Frame production
    # ------------------------------------------------------------------

    def frames(self) -> Iterator[tuple[RenderState, np.ndarray]]:
        """Yield (state, pixels) for every frame in order.

        Nothing is drawn until the caller asks for the next frame, so a
        caller may stop iterating at any point.
        """
        for frame in range(self.total_frames):
            if self._cancelled:
                raise RenderCancelled(
                    f"Render cancelled at frame {frame}/{self.total_frames}"
                )
            self.state = self.compositor.state_for(frame)
            yield self.state, self.compositor.render_frame(frame, self.state)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def render(self) -> EncodedArtifact:
        """Encode every frame and return the finished artifact.

        Raises:
            RenderCancelled: cancel() was called before the last frame.
            EncodingFailure: drawing or the writer failed; partial output
                has been removed.
        """
        self._begin()
        finished = False
        try:
            for _state, pixels in self.frames():
                self._writer.write_frame(pixels)
            finished = True
        except RenderCancelled:
            raise
        except Exception as e:
            raise EncodingFailure(self._failure_message(e)) from e
        finally:
            # also covers KeyboardInterrupt / SystemExit
            if not finished:
                self._abort()
        return self._finish()

    async def render_async(self) -> EncodedArtifact:
        """Cancellable render that yields to the event loop after each frame."""
        self._begin()
        finished = False
        try:
            for _state, pixels in self.frames():
                self._writer.write_frame(pixels)
                await asyncio.sleep(0)
            finished = True
        except (asyncio.CancelledError, RenderCancelled):
            self._cancelled = True
            raise
        except Exception as e:
            raise EncodingFailure(self._failure_message(e)) from e
        finally:
            if not finished:
                self._abort()
        return self._finish()

    def _failure_message(self, error: Exception) -> str:
        frame = self.state.frame if self.state else 0
        return f"Rendering failed at frame {frame}/{self.total_frames}: {error}"

    def _begin(self) -> None:
        if self._started:
            raise EncodingFailure("A render session can only be used once")
        self._started = True

        fd, name = tempfile.mkstemp(
            prefix="postreel-", suffix=f".{self.container}", dir=self.temp_dir
        )
        os.close(fd)
        self._path = Path(name)

        width, height = self.compositor.size
        console.print(
            f"[cyan]Rendering {self.total_frames} frames[/] "
            f"({width}x{height} @ {self.compositor.fps} fps, "
            f"{len(self.compositor.plan.scenes)} scenes, {self.codec})"
        )
        try:
            self._writer = self.writer_factory(
                str(self._path),
                (width, height),
                self.compositor.fps,
                codec=self.codec,
                bitrate=self.bitrate,
            )
        except Exception as e:
            self._path.unlink(missing_ok=True)
            self._path = None
            raise EncodingFailure(f"Could not start the video writer: {e}") from e

    def _abort(self) -> None:
        """Close the writer and drop the partial file."""
        writer, self._writer = self._writer, None
        if writer is not None:
            try:
                writer.close()
            except Exception as e:
                console.print(f"[dim]Writer close after failure also failed: {e}[/dim]")
        if self._path is not None:
            self._path.unlink(missing_ok=True)
            self._path = None
        console.print("[yellow]Render aborted, partial output removed.[/yellow]")

    def _finish(self) -> EncodedArtifact:
        writer, self._writer = self._writer, None
        try:
            writer.close()
            data = self._path.read_bytes()
        except Exception as e:
            self._path.unlink(missing_ok=True)
            self._path = None
            raise EncodingFailure(f"Could not finalize the video: {e}") from e
        if not data:
            self._path.unlink(missing_ok=True)
            self._path = None
            raise EncodingFailure("The video writer produced no output")

        artifact = EncodedArtifact(
            data=data,
            mime_type=MIME_TYPES.get(self.container, f"video/{self.container}"),
            filename=artifact_filename(
                self.compositor.platform, self.prompt, self.container
            ),
            path=self._path,
        )
        self._path = None
        console.print(
            f"[bold green]Rendered:[/] {artifact.filename} "
            f"({artifact.size / 1024:.1f} KB)"
        )
        return artifact
