"""
Fallback scene plan built from the raw prompt alone.

Used whenever the plan producer is disabled, unreachable, or returns no
scenes, so the compositor always has something to draw.
"""

import random

from postreel.hashing import stable_hash
from postreel.models import Scene, ScenePlan

INTRO_DURATION = 3.0
KEY_POINT_DURATION = 4.0
OUTRO_DURATION = 3.0
OUTRO_TEXT = "Thanks for watching!"

MIN_SCENES = 3
MAX_SCENES = 5


def synthesize_plan(prompt: str, seed: int | None = None) -> ScenePlan:
    """Generate intro, key-point and outro scenes for a prompt.

    The scene count is drawn from [MIN_SCENES, MAX_SCENES] with an RNG
    seeded by the prompt (or by an explicit seed), so the same prompt
    always yields the same plan.

    Args:
        prompt: Raw prompt text; becomes the intro scene's script.
        seed: Optional RNG seed overriding the prompt-derived one.

    Returns:
        A ScenePlan with at least MIN_SCENES scenes.
    """
    prompt = (prompt or "").strip()
    rng = random.Random(stable_hash(prompt) if seed is None else seed)
    count = rng.randint(MIN_SCENES, MAX_SCENES)

    scenes = [
        Scene(
            scene_id=1,
            duration=INTRO_DURATION,
            script=prompt,
            visual_description=f"Scene 1 for {prompt}",
            transition="fade",
        )
    ]
    for point in range(1, count - 1):
        scenes.append(Scene(
            scene_id=point + 1,
            duration=KEY_POINT_DURATION,
            script=f"Key point #{point} about {prompt}",
            visual_description=f"Scene {point + 1} for {prompt}",
            transition="fade",
        ))
    scenes.append(Scene(
        scene_id=count,
        duration=OUTRO_DURATION,
        script=OUTRO_TEXT,
        visual_description="Follow for more!",
        transition="fade",
    ))

    return ScenePlan(scenes=scenes, visual_style="default")
