"""
Error taxonomy for the render pipeline.

PlanUnavailable is recovered locally (fallback plan). Everything else
propagates to the caller as a single failure with a readable message.
"""


class PostreelError(RuntimeError):
    """Base class for render pipeline failures."""


class PlanUnavailable(PostreelError):
    """The upstream plan producer failed or returned nothing usable."""


class DrawSurfaceUnavailable(PostreelError):
    """No drawable pixel surface could be allocated for a frame."""


class EncodingFailure(PostreelError):
    """The frame loop or the video writer failed mid-render."""


class RenderCancelled(EncodingFailure):
    """The caller cancelled the render before it finished."""


class PlatformNotConnected(PostreelError, ValueError):
    """The target platform requires a connection the user has not made."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(
            f"{platform} is not connected. Connect the account before rendering."
        )
