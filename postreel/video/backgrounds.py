"""
Animated background patterns.

Each pattern is a function of (frame, fps, size, palette, scene index) and
nothing else, so the same inputs always produce the same pixels. The scene
index picks the pattern and seeds any per-scene randomness.

Patterns:
    0 - gradient sweep (primary -> secondary, slowly swinging angle)
    1 - drifting particles (bokeh circles over the secondary color)
    2 - rotating geometric tiles (squares, circles, triangles with cycling hue)
    3 - pulsing radial glow (primary core fading through secondary to black)
"""

import colorsys
import math
import random
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw

from postreel.video.style import ResolvedStyle
from postreel.video.surface import composite, new_overlay, new_surface

# Defaults for the particle field, overridable via config.yaml video.particles
PARTICLE_DEFAULTS = {
    "count": 50,
    "min_radius": 0.006,   # fraction of frame width
    "max_radius": 0.02,
    "speed": 0.08,         # fraction of height per second
    "opacity": 0.5,
}

TILE_COLUMNS = 4
TILE_ROWS = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@lru_cache(maxsize=8)
def _coordinate_grid(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """Normalized (x, y) coordinate grids, cached per frame size."""
    y_coords, x_coords = np.mgrid[0:height, 0:width].astype(np.float32)
    x_norm = x_coords / max(width - 1, 1)
    y_norm = y_coords / max(height - 1, 1)
    x_norm.setflags(write=False)
    y_norm.setflags(write=False)
    return x_norm, y_norm


def _lerp_pixels(
    start: tuple[int, int, int],
    end: tuple[int, int, int],
    t: np.ndarray,
) -> np.ndarray:
    """Per-pixel linear blend between two colors for a weight map t in [0, 1]."""
    t = np.clip(t, 0.0, 1.0)[:, :, np.newaxis]
    a = np.asarray(start, dtype=np.float32)
    b = np.asarray(end, dtype=np.float32)
    return (a * (1 - t) + b * t).astype(np.uint8)


def _to_image(pixels: np.ndarray, width: int, height: int) -> Image.Image:
    img = new_surface((width, height))
    img.paste(Image.fromarray(np.ascontiguousarray(pixels)))
    return img


# ---------------------------------------------------------------------------
# Gradient sweep
# ---------------------------------------------------------------------------


def draw_gradient_sweep(
    frame: int,
    fps: float,
    size: tuple[int, int],
    style: ResolvedStyle,
    scene_index: int,
    config: dict | None = None,
) -> Image.Image:
    """Diagonal primary -> secondary gradient whose angle swings over time."""
    width, height = size
    t = frame / fps
    angle_deg = 45.0 + 30.0 * math.sin(2 * math.pi * t / 6.0)
    angle_rad = math.radians(angle_deg)
    dx, dy = math.cos(angle_rad), math.sin(angle_rad)

    x_norm, y_norm = _coordinate_grid(width, height)
    projection = x_norm * dx + y_norm * dy
    p_min, p_max = projection.min(), projection.max()
    grad_t = (projection - p_min) / max(p_max - p_min, 1e-6)

    return _to_image(_lerp_pixels(style.primary, style.secondary, grad_t), width, height)


# ---------------------------------------------------------------------------
# Drifting particles
# ---------------------------------------------------------------------------


@dataclass
class Particle:
    """A single floating bokeh particle."""
    x: float          # 0-1 normalized x position
    y: float          # 0-1 normalized y position
    radius: float     # fraction of frame width
    speed: float      # upward drift per second (fraction of height)
    opacity: float    # 0-1
    phase: float      # phase for sway and pulsing


def generate_particles(count: int, config: dict, seed: int = 0) -> list[Particle]:
    """Generate a deterministic set of particles for a scene.

    Larger particles drift slower and are more transparent, which reads
    as depth.
    """
    rng = random.Random(seed)
    min_r = config.get("min_radius", PARTICLE_DEFAULTS["min_radius"])
    max_r = config.get("max_radius", PARTICLE_DEFAULTS["max_radius"])
    base_speed = config.get("speed", PARTICLE_DEFAULTS["speed"])
    max_opacity = config.get("opacity", PARTICLE_DEFAULTS["opacity"])

    particles = []
    for _ in range(count):
        r = rng.uniform(min_r, max_r)
        size_factor = (r - min_r) / max(max_r - min_r, 1e-6)
        particles.append(Particle(
            x=rng.random(),
            y=rng.random(),
            radius=r,
            speed=base_speed * (0.5 + 0.5 * (1 - size_factor)),
            opacity=max_opacity * (0.4 + 0.6 * (1 - size_factor)),
            phase=rng.uniform(0, 2 * math.pi),
        ))
    return particles


@lru_cache(maxsize=32)
def scene_particles(scene_index: int, config_items: tuple) -> tuple[Particle, ...]:
    """The particle set for one scene, built once and reused for every frame.

    config_items is the particle config as sorted (key, value) pairs so it
    can key the cache.
    """
    config = dict(config_items)
    return tuple(generate_particles(int(config["count"]), config, seed=scene_index * 1000))


def draw_particles(
    frame: int,
    fps: float,
    size: tuple[int, int],
    style: ResolvedStyle,
    scene_index: int,
    config: dict | None = None,
) -> Image.Image:
    """Primary-tinted particles drifting upward over the secondary color."""
    width, height = size
    particle_config = {**PARTICLE_DEFAULTS, **(config or {})}
    t = frame / fps

    img = new_surface(size, style.secondary)
    overlay = new_overlay(size)
    pdraw = ImageDraw.Draw(overlay)
    pr, pg, pb = style.primary

    particles = scene_particles(scene_index, tuple(sorted(particle_config.items())))
    for p in particles:
        py = (p.y - p.speed * t) % 1.0
        px = (p.x + math.sin(t * 0.5 + p.phase) * 0.01) % 1.0
        pulse = 0.7 + 0.3 * math.sin(t * 1.5 + p.phase)
        alpha = int(255 * min(1.0, p.opacity * pulse))

        cx = int(px * width)
        cy = int(py * height)
        r = max(1, int(p.radius * width))
        pdraw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=(pr, pg, pb, alpha))

    return composite(img, overlay)


# ---------------------------------------------------------------------------
# Rotating geometric tiles
# ---------------------------------------------------------------------------


def draw_geometric_tiles(
    frame: int,
    fps: float,
    size: tuple[int, int],
    style: ResolvedStyle,
    scene_index: int,
    config: dict | None = None,
) -> Image.Image:
    """A 4x3 grid of squares, circles and triangles, rotating with cycling hue."""
    width, height = size
    tile_w = width / TILE_COLUMNS
    tile_h = height / TILE_ROWS
    radius = min(tile_w, tile_h) / 2

    img = new_surface(size, style.secondary)
    overlay = new_overlay(size)
    draw = ImageDraw.Draw(overlay)

    for i in range(TILE_COLUMNS * TILE_ROWS):
        cx = (i % TILE_COLUMNS) * tile_w + tile_w / 2
        cy = (i // TILE_COLUMNS) * tile_h + tile_h / 2
        hue = ((i * 30 + frame * 3) % 360) / 360.0
        r, g, b = colorsys.hls_to_rgb(hue, 0.6, 0.7)
        fill = (int(r * 255), int(g * 255), int(b * 255), 102)
        rotation = (frame * 2 + i * 15) % 360

        shape = i % 3
        if shape == 0:
            draw.regular_polygon((cx, cy, radius), 4, rotation=rotation, fill=fill)
        elif shape == 1:
            draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill=fill)
        else:
            draw.regular_polygon((cx, cy, radius), 3, rotation=rotation, fill=fill)

    return composite(img, overlay)


# ---------------------------------------------------------------------------
# Pulsing radial glow
# ---------------------------------------------------------------------------


def draw_radial_glow(
    frame: int,
    fps: float,
    size: tuple[int, int],
    style: ResolvedStyle,
    scene_index: int,
    config: dict | None = None,
) -> Image.Image:
    """Radial gradient primary -> secondary (70%) -> black, pulsing every 2s."""
    width, height = size
    t = frame / fps
    pulse = 0.5 + 0.2 * math.sin(2 * math.pi * t / 2.0)
    radius = min(width, height) * pulse

    x_norm, y_norm = _coordinate_grid(width, height)
    dx = (x_norm - 0.5) * (width - 1)
    dy = (y_norm - 0.5) * (height - 1)
    dist = np.sqrt(dx * dx + dy * dy) / max(radius, 1e-6)

    inner = _lerp_pixels(style.primary, style.secondary, dist / 0.7)
    outer = _lerp_pixels(style.secondary, (0, 0, 0), (dist - 0.7) / 0.3)
    pixels = np.where((dist < 0.7)[:, :, np.newaxis], inner, outer)

    return _to_image(pixels.astype(np.uint8), width, height)


BACKGROUNDS = (
    draw_gradient_sweep,
    draw_particles,
    draw_geometric_tiles,
    draw_radial_glow,
)


def draw_background(
    scene_index: int,
    frame: int,
    fps: float,
    size: tuple[int, int],
    style: ResolvedStyle,
    config: dict | None = None,
) -> Image.Image:
    """Draw the background pattern assigned to a scene position."""
    pattern = BACKGROUNDS[scene_index % len(BACKGROUNDS)]
    return pattern(frame, fps, size, style, scene_index, config)
