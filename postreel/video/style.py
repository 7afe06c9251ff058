"""
Style resolution: platform + optional style profile -> concrete drawing theme.

Pure functions only. Unknown platforms fall back to the YouTube look and
landscape orientation; nothing in here raises for bad input.
"""

from dataclasses import dataclass

from PIL import ImageColor

from postreel.models import StyleProfile

WHITE = (255, 255, 255)

# Per-platform (primary, secondary) brand colors
PLATFORM_COLORS = {
    "YouTube": ("#FF0000", "#282828"),
    "TikTok": ("#00f2ea", "#ff0050"),
    "Instagram": ("#833AB4", "#FD1D1D"),
    "Snapchat": ("#FFFC00", "#000000"),
}
DEFAULT_COLORS = PLATFORM_COLORS["YouTube"]

PORTRAIT_PLATFORMS = {"TikTok", "Instagram"}
PORTRAIT_SIZE = (720, 1280)
LANDSCAPE_SIZE = (1280, 720)

PLATFORM_VISUAL_STYLE = {
    "YouTube": "cinematic",
    "TikTok": "bold",
    "Instagram": "sleek",
    "Snapchat": "high-contrast",
}


@dataclass(frozen=True)
class TextPreset:
    """How a visual style treats on-screen text."""
    title_scale: float = 1.0
    shadow: bool = True
    stroke: int = 0
    letterbox: bool = False


TEXT_PRESETS = {
    "cinematic": TextPreset(title_scale=1.0, shadow=True, letterbox=True),
    "bold": TextPreset(title_scale=1.2, shadow=True, stroke=2),
    "sleek": TextPreset(title_scale=0.9, shadow=False),
    "high-contrast": TextPreset(title_scale=1.1, shadow=False, stroke=3),
    "default": TextPreset(),
}


@dataclass(frozen=True)
class ResolvedStyle:
    """Concrete theme handed to the compositor. Read-only during a render."""
    primary: tuple[int, int, int]
    secondary: tuple[int, int, int]
    text: tuple[int, int, int]
    visual_style: str = "default"
    text_animations: tuple[str, ...] = ()
    custom_font: str | None = None

    @property
    def preset(self) -> TextPreset:
        return TEXT_PRESETS.get(self.visual_style, TEXT_PRESETS["default"])


def parse_color(value: str, fallback: tuple[int, int, int]) -> tuple[int, int, int]:
    """Parse '#rrggbb', a CSS color name or rgb() into an RGB tuple."""
    try:
        rgb = ImageColor.getrgb(str(value).strip())
    except ValueError:
        return fallback
    return tuple(rgb[:3])


def is_portrait(platform: str) -> bool:
    return platform in PORTRAIT_PLATFORMS


def frame_size(platform: str, scale: float = 1.0) -> tuple[int, int]:
    """Canvas (width, height) for a platform, optionally scaled down.

    Scaled sizes are rounded to even numbers for yuv420p encoding.
    """
    width, height = PORTRAIT_SIZE if is_portrait(platform) else LANDSCAPE_SIZE
    if scale == 1.0:
        return width, height

    def _even(v: float) -> int:
        return max(2, int(round(v / 2.0)) * 2)

    return _even(width * scale), _even(height * scale)


def resolve_style(
    platform: str,
    override: StyleProfile | None = None,
    plan_visual_style: str | None = None,
) -> ResolvedStyle:
    """Resolve the drawing theme for a render.

    An override palette with two or more entries supplies primary and
    secondary (first two entries) and the text color (last entry).
    Otherwise the platform's brand colors are used with white text.

    Visual style precedence: override, then the plan's own style tag,
    then the platform default.
    """
    primary_hex, secondary_hex = PLATFORM_COLORS.get(platform, DEFAULT_COLORS)
    primary = parse_color(primary_hex, WHITE)
    secondary = parse_color(secondary_hex, WHITE)
    text = WHITE

    palette = override.color_palette if override else []
    if len(palette) >= 2:
        primary = parse_color(palette[0], primary)
        secondary = parse_color(palette[1], secondary)
        text = parse_color(palette[-1], text)

    # "default" on a plan is the producer's filler value, not a choice
    override_style = override.visual_style if override else None
    if isinstance(override_style, str) and override_style in TEXT_PRESETS:
        visual_style = override_style
    elif isinstance(plan_visual_style, str) and plan_visual_style in TEXT_PRESETS \
            and plan_visual_style != "default":
        visual_style = plan_visual_style
    else:
        visual_style = PLATFORM_VISUAL_STYLE.get(platform, "default")

    return ResolvedStyle(
        primary=primary,
        secondary=secondary,
        text=text,
        visual_style=visual_style,
        text_animations=tuple(override.text_animations) if override else (),
        custom_font=override.custom_font if override else None,
    )
