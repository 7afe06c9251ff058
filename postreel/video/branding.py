"""Platform branding, progress bar and letterbox overlays."""

import math

from PIL import Image, ImageDraw

from postreel.video.style import ResolvedStyle
from postreel.video.surface import composite, new_overlay
from postreel.video.text import get_font

PROGRESS_DEFAULTS = {
    "margin": 20,
    "height": 6,
    "bottom_offset": 12,
    "dot_radius": 10,
    "track_opacity": 0.3,
}

LETTERBOX_FRACTION = 0.06


# ---------------------------------------------------------------------------
# Logos (top-left corner)
# ---------------------------------------------------------------------------


def _draw_youtube(draw: ImageDraw.ImageDraw, pad: float, size: float, frame: int):
    draw.rectangle([pad, pad, pad + size * 1.6, pad + size], fill=(255, 0, 0, 255))
    draw.polygon(
        [
            (pad + size * 0.6, pad + size * 0.3),
            (pad + size * 0.6, pad + size * 0.7),
            (pad + size * 1.1, pad + size * 0.5),
        ],
        fill=(255, 255, 255, 255),
    )


def _draw_tiktok(draw: ImageDraw.ImageDraw, pad: float, size: float, frame: int):
    font = get_font(int(size * 0.6))
    draw.text((pad, pad + size * 0.35), "TikTok", fill=(0, 0, 0, 255), font=font)
    # the two note squares trade a little brightness back and forth
    shimmer = 0.85 + 0.15 * math.sin(frame * 0.2)
    square = size * 0.3
    cyan = (0, 242, 234, int(255 * shimmer))
    pink = (255, 0, 80, int(255 * (1.7 - shimmer)))
    draw.rectangle([pad + size * 0.8, pad, pad + size * 0.8 + square, pad + square], fill=cyan)
    draw.rectangle([pad + size * 1.2, pad, pad + size * 1.2 + square, pad + square], fill=pink)


def _draw_instagram(draw: ImageDraw.ImageDraw, pad: float, size: float, frame: int):
    white = (255, 255, 255, 255)
    draw.rectangle([pad, pad, pad + size, pad + size], outline=white, width=2)
    cx, cy, r = pad + size / 2, pad + size / 2, size / 3
    draw.ellipse([cx - r, cy - r, cx + r, cy + r], outline=white, width=2)
    flash = size / 10 * (1.0 + 0.2 * math.sin(frame * 0.3))
    fx, fy = pad + size * 0.8, pad + size * 0.2
    draw.ellipse([fx - flash, fy - flash, fx + flash, fy + flash], fill=white)


def _draw_snapchat(draw: ImageDraw.ImageDraw, pad: float, size: float, frame: int):
    draw.ellipse([pad, pad, pad + size, pad + size], fill=(255, 252, 0, 255))
    eye = size / 6
    for ex in (pad + size / 3, pad + size * 2 / 3):
        ey = pad + size / 2
        draw.ellipse([ex - eye, ey - eye, ex + eye, ey + eye], fill=(255, 255, 255, 255))


LOGOS = {
    "YouTube": _draw_youtube,
    "TikTok": _draw_tiktok,
    "Instagram": _draw_instagram,
    "Snapchat": _draw_snapchat,
}


def draw_platform_logo(img: Image.Image, platform: str, frame: int) -> Image.Image:
    """Draw the platform mark in the top-left corner. Unknown platforms get none."""
    painter = LOGOS.get(platform)
    if painter is None:
        return img
    width = img.size[0]
    overlay = new_overlay(img.size)
    painter(ImageDraw.Draw(overlay), width * 0.02, width * 0.05, frame)
    return composite(img, overlay)


# ---------------------------------------------------------------------------
# Progress bar
# ---------------------------------------------------------------------------


def progress_fraction(frame: int, total_frames: int) -> float:
    """Fill fraction: exactly 0.0 on the first frame and 1.0 on the last."""
    if total_frames <= 1:
        return 1.0
    return max(0.0, min(1.0, frame / (total_frames - 1)))


def progress_bar_top(height: int, config: dict | None = None) -> int:
    cfg = {**PROGRESS_DEFAULTS, **(config or {})}
    return height - int(cfg["bottom_offset"])


def draw_progress_bar(
    img: Image.Image,
    frame: int,
    total_frames: int,
    style: ResolvedStyle,
    config: dict | None = None,
) -> Image.Image:
    """Translucent track with a primary-colored fill and a dot at the fill edge."""
    cfg = {**PROGRESS_DEFAULTS, **(config or {})}
    width, height = img.size
    margin = int(cfg["margin"])
    bar_h = int(cfg["height"])
    bar_y = progress_bar_top(height, cfg)
    bar_w = max(1, width - 2 * margin)

    overlay = new_overlay(img.size)
    draw = ImageDraw.Draw(overlay)
    draw.rectangle(
        [margin, bar_y, margin + bar_w, bar_y + bar_h],
        fill=(255, 255, 255, int(255 * cfg["track_opacity"])),
    )
    fill_w = bar_w * progress_fraction(frame, total_frames)
    if fill_w > 0:
        draw.rectangle([margin, bar_y, margin + fill_w, bar_y + bar_h], fill=(*style.primary, 255))

    r = int(cfg["dot_radius"])
    cx, cy = margin + fill_w, bar_y + bar_h / 2
    draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=(255, 255, 255, 255))
    return composite(img, overlay)


# ---------------------------------------------------------------------------
# Letterbox
# ---------------------------------------------------------------------------


def draw_letterbox(img: Image.Image) -> Image.Image:
    """Black bars top and bottom for the cinematic preset."""
    width, height = img.size
    bar = int(height * LETTERBOX_FRACTION)
    if bar <= 0:
        return img
    draw = ImageDraw.Draw(img)
    draw.rectangle([0, 0, width, bar], fill=(0, 0, 0))
    draw.rectangle([0, height - bar, width, height], fill=(0, 0, 0))
    return img
