"""
Text layer: fonts, word layout, staggered word cascade and body entrances.

Layouts are computed once per scene (not per frame); the per-frame work is
only opacity/offset math plus drawing.
"""

import math
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from postreel.hashing import stable_hash
from postreel.models import Scene
from postreel.video.style import ResolvedStyle
from postreel.video.surface import composite, new_overlay

# Word cascade timing (in frames, relative to the scene's first frame)
WORD_DELAY_FRAMES = 3
WORD_SETTLE_FRAMES = 15
SPRING_OMEGA = 0.5

ENTRANCE_ANIMATIONS = ("fade-in", "slide-from-bottom", "scale-in", "slide-from-side")
ENTRANCE_WINDOW = 0.3  # fraction of scene progress

CTA_TEXT = "Like & Follow!"

_FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
]


# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------


@lru_cache(maxsize=64)
def get_font(size: int, custom_font: str | None = None) -> ImageFont.ImageFont:
    """Load a font, preferring the style's custom font, then system fonts."""
    size = max(1, int(size))
    candidates = ([custom_font] if custom_font else []) + _FONT_CANDIDATES
    for font_path in candidates:
        if Path(font_path).exists():
            try:
                return ImageFont.truetype(font_path, size)
            except (OSError, IOError):
                continue
    return ImageFont.load_default(size=size)


def _text_width(draw: ImageDraw.ImageDraw, text: str, font) -> int:
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0]


# ---------------------------------------------------------------------------
# Timing curves
# ---------------------------------------------------------------------------


def spring(t: float, omega: float = SPRING_OMEGA) -> float:
    """Critically damped spring step response, 0 at t=0 rising toward 1."""
    if t <= 0:
        return 0.0
    return 1.0 - (1.0 + omega * t) * math.exp(-omega * t)


def word_opacity(
    local_frame: int,
    word_index: int,
    delay: int = WORD_DELAY_FRAMES,
    settle: int = WORD_SETTLE_FRAMES,
) -> float:
    """Opacity of word N at a frame counted from the start of its scene.

    Zero until the word's delay (index * delay) has elapsed, spring-eased
    after that, and exactly 1.0 once `settle` frames have passed.
    """
    t = local_frame - word_index * delay
    if t <= 0:
        return 0.0
    if t >= settle:
        return 1.0
    return spring(t)


def smoothstep(p: float) -> float:
    p = max(0.0, min(1.0, p))
    return p * p * (3.0 - 2.0 * p)


@dataclass(frozen=True)
class Entrance:
    alpha: float = 1.0
    dx: float = 0.0      # fraction of frame width
    dy: float = 0.0      # fraction of frame height
    scale: float = 1.0


SETTLED = Entrance()


def select_entrance(scene_id: int | str, allowed: tuple[str, ...] = ()) -> str:
    """Pick a body entrance animation from the scene's stable identifier.

    When the style lists recognised text animations, only those are used.
    """
    vocabulary = tuple(a for a in allowed if a in ENTRANCE_ANIMATIONS) or ENTRANCE_ANIMATIONS
    return vocabulary[stable_hash(scene_id) % len(vocabulary)]


def entrance_transform(animation: str, progress: float) -> Entrance:
    """Transform for body content at a given scene progress."""
    if progress >= ENTRANCE_WINDOW:
        return SETTLED
    eased = smoothstep(progress / ENTRANCE_WINDOW)
    if animation == "slide-from-bottom":
        return Entrance(alpha=eased, dy=(1 - eased) * 0.15)
    if animation == "scale-in":
        return Entrance(alpha=eased, scale=0.6 + 0.4 * eased)
    if animation == "slide-from-side":
        return Entrance(alpha=eased, dx=-(1 - eased) * 0.25)
    return Entrance(alpha=eased)


# ---------------------------------------------------------------------------
# Layout (once per scene)
# ---------------------------------------------------------------------------


@dataclass
class SceneLayout:
    """Pre-computed text positions for one scene."""
    title_font: ImageFont.ImageFont
    body_font: ImageFont.ImageFont
    small_font: ImageFont.ImageFont
    title_words: list[tuple[str, int, int]] = field(default_factory=list)
    body_lines: list[tuple[str, int, int]] = field(default_factory=list)
    entrance: str = "fade-in"
    is_outro: bool = False


def wrap_words(
    draw: ImageDraw.ImageDraw, words: list[str], font, max_width: float,
) -> list[list[str]]:
    """Greedy word wrap by measured width."""
    lines: list[list[str]] = []
    current: list[str] = []
    for word in words:
        candidate = " ".join(current + [word])
        if current and _text_width(draw, candidate, font) >= max_width:
            lines.append(current)
            current = [word]
        else:
            current.append(word)
    if current:
        lines.append(current)
    return lines


def compute_scene_layout(
    scene: Scene, size: tuple[int, int], style: ResolvedStyle,
) -> SceneLayout:
    width, height = size
    preset = style.preset
    title_font = get_font(int(width * 0.05 * preset.title_scale), style.custom_font)
    body_font = get_font(int(width * 0.035), style.custom_font)
    small_font = get_font(int(width * 0.025), style.custom_font)

    draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    max_width = width * 0.8
    title_size = max(1, int(width * 0.05 * preset.title_scale))
    space = _text_width(draw, "a a", title_font) - _text_width(draw, "aa", title_font)

    title_words = []
    y = int(height * 0.2)
    for line in wrap_words(draw, scene.script.split(), title_font, max_width):
        line_width = _text_width(draw, " ".join(line), title_font)
        x = (width - line_width) // 2
        for word in line:
            title_words.append((word, x, y))
            x += _text_width(draw, word, title_font) + space
        y += int(title_size * 1.3)

    body_size = max(1, int(width * 0.035))
    body_lines = []
    body_y = max(int(height * 0.5), y + body_size)
    body_text = scene.visual_description or f"Scene {scene.scene_id}"
    for line in wrap_words(draw, body_text.split(), body_font, max_width):
        text = " ".join(line)
        body_lines.append((text, (width - _text_width(draw, text, body_font)) // 2, body_y))
        body_y += int(body_size * 1.2)

    return SceneLayout(
        title_font=title_font,
        body_font=body_font,
        small_font=small_font,
        title_words=title_words,
        body_lines=body_lines,
        entrance=select_entrance(scene.scene_id, style.text_animations),
        is_outro="Thanks" in scene.script,
    )


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


def _draw_text(draw, xy, text, font, alpha, style: ResolvedStyle):
    preset = style.preset
    x, y = xy
    a = int(255 * alpha)
    if preset.shadow:
        draw.text((x + 2, y + 2), text, fill=(0, 0, 0, a // 2), font=font)
    if preset.stroke:
        draw.text(
            (x, y), text, fill=(*style.text, a), font=font,
            stroke_width=preset.stroke, stroke_fill=(0, 0, 0, a),
        )
    else:
        draw.text((x, y), text, fill=(*style.text, a), font=font)


def draw_title(
    img: Image.Image, layout: SceneLayout, local_frame: int, style: ResolvedStyle,
) -> Image.Image:
    """Staggered word cascade for the scene script."""
    overlay = new_overlay(img.size)
    draw = ImageDraw.Draw(overlay)
    rise = layout.title_font.size * 0.3 if hasattr(layout.title_font, "size") else 6
    for i, (word, x, y) in enumerate(layout.title_words):
        alpha = word_opacity(local_frame, i)
        if alpha <= 0:
            continue
        offset = int((1 - alpha) * rise)
        _draw_text(draw, (x, y + offset), word, layout.title_font, alpha, style)
    return composite(img, overlay)


def draw_body(
    img: Image.Image, layout: SceneLayout, progress: float, style: ResolvedStyle,
) -> Image.Image:
    """Visual description with the scene's entrance animation."""
    width, height = img.size
    entrance = entrance_transform(layout.entrance, progress)
    if entrance.alpha <= 0:
        return img

    layer = new_overlay(img.size)
    draw = ImageDraw.Draw(layer)
    for text, x, y in layout.body_lines:
        _draw_text(draw, (x, y), text, layout.body_font, 1.0, style)

    if entrance.scale != 1.0:
        sw = max(1, int(width * entrance.scale))
        sh = max(1, int(height * entrance.scale))
        scaled = layer.resize((sw, sh), Image.BILINEAR)
        layer = new_overlay(img.size)
        layer.paste(scaled, ((width - sw) // 2, (height - sh) // 2))
    if entrance.dx or entrance.dy:
        shifted = new_overlay(img.size)
        shifted.paste(layer, (int(entrance.dx * width), int(entrance.dy * height)))
        layer = shifted
    if entrance.alpha < 1.0:
        alpha_channel = layer.getchannel("A").point(lambda a: int(a * entrance.alpha))
        layer.putalpha(alpha_channel)
    return composite(img, layer)


def draw_call_to_action(
    img: Image.Image, layout: SceneLayout, progress: float, style: ResolvedStyle,
) -> Image.Image:
    """'Like & Follow!' on outro scenes, fading in over the first half."""
    if not layout.is_outro:
        return img
    width, height = img.size
    overlay = new_overlay(img.size)
    draw = ImageDraw.Draw(overlay)
    text_w = _text_width(draw, CTA_TEXT, layout.title_font)
    _draw_text(
        draw, ((width - text_w) // 2, int(height * 0.7)), CTA_TEXT,
        layout.title_font, min(1.0, progress * 2), style,
    )
    return composite(img, overlay)


def draw_scene_indicator(
    img: Image.Image, layout: SceneLayout, scene: Scene, style: ResolvedStyle,
    bottom_margin: int,
) -> Image.Image:
    """'Scene N' label in the bottom-right corner at 70% opacity."""
    width, height = img.size
    overlay = new_overlay(img.size)
    draw = ImageDraw.Draw(overlay)
    label = f"Scene {scene.scene_id}"
    bbox = draw.textbbox((0, 0), label, font=layout.small_font)
    x = width - (bbox[2] - bbox[0]) - int(width * 0.02)
    y = height - (bbox[3] - bbox[1]) - bottom_margin
    draw.text((x, y), label, fill=(*style.text, int(255 * 0.7)), font=layout.small_font)
    return composite(img, overlay)
