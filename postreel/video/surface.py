"""Pixel surface allocation and compositing helpers shared by the drawing layers."""

from PIL import Image

from postreel.errors import DrawSurfaceUnavailable


def new_surface(
    size: tuple[int, int],
    color: tuple = (0, 0, 0),
    mode: str = "RGB",
) -> Image.Image:
    """Allocate a drawable image, raising DrawSurfaceUnavailable on failure."""
    width, height = size
    if width <= 0 or height <= 0:
        raise DrawSurfaceUnavailable(f"Invalid surface size {width}x{height}")
    try:
        return Image.new(mode, (width, height), color)
    except (ValueError, MemoryError, OSError) as e:
        raise DrawSurfaceUnavailable(
            f"Could not allocate a {width}x{height} {mode} surface: {e}"
        ) from e


def new_overlay(size: tuple[int, int]) -> Image.Image:
    """Transparent RGBA layer for alpha-blended drawing."""
    return new_surface(size, (0, 0, 0, 0), mode="RGBA")


def composite(img: Image.Image, overlay: Image.Image) -> Image.Image:
    """Alpha-composite an RGBA overlay onto an RGB image."""
    return Image.alpha_composite(img.convert("RGBA"), overlay).convert("RGB")
