"""
Scene plan producer backed by the Anthropic Messages API.

The model is asked for a storyboard as JSON in the scene plan shape. Any
failure (no API key, API error, unparseable reply, zero scenes) surfaces as
PlanUnavailable; resolve_plan() recovers from that with the prompt-only
fallback plan.
"""

import json
import os
import re

from rich.console import Console

from postreel.errors import PlanUnavailable
from postreel.fallback_plan import synthesize_plan
from postreel.models import RenderRequest, ScenePlan
from postreel.video.style import is_portrait

console = Console()

PLANNER_DEFAULTS = {
    "enabled": True,
    "model": "claude-sonnet-4-20250514",
    "max_tokens": 2048,
    "timeout": 30.0,
    "max_retries": 2,
}

PLAN_PROMPT = """You are a storyboard writer for short social media videos.

Write a scene plan for a {orientation} {platform} video about:
{prompt}

RULES:
- 3 to 6 scenes, 2 to 6 seconds each
- "script" is the short on-screen title for the scene (under 12 words)
- "visualDescription" is one sentence of supporting body text
- The last scene thanks the viewer for watching
- "visualStyle" is one of: cinematic, bold, sleek, high-contrast, default

Return ONLY a JSON object. No markdown fences, no explanation.
Example format:
{{"scenes": [{{"sceneId": 1, "duration": 3, "script": "...", "visualDescription": "...", "transition": "fade"}}],
 "totalDuration": 15, "musicTrack": "upbeat electronic", "visualStyle": "bold",
 "colorGrading": "warm", "editingStyle": "fast cuts"}}"""


def planner_config(config: dict | None) -> dict:
    return {**PLANNER_DEFAULTS, **((config or {}).get("planner") or {})}


def parse_plan_response(raw: str) -> ScenePlan:
    """Parse the model reply into a ScenePlan, stripping markdown fences."""
    raw = raw.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\s*", "", raw)
        raw = re.sub(r"\s*```$", "", raw)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PlanUnavailable(f"Scene plan reply was not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PlanUnavailable("Scene plan reply was not a JSON object")
    try:
        plan = ScenePlan.from_dict(data)
    except ValueError as e:
        raise PlanUnavailable(f"Scene plan reply was malformed: {e}") from e
    if not plan.scenes:
        raise PlanUnavailable("Scene plan reply contained no scenes")
    return plan


def generate_scene_plan(prompt: str, platform: str, config: dict | None = None) -> ScenePlan:
    """Ask the hosted model for a scene plan.

    Args:
        prompt: What the video is about.
        platform: Target platform; sets the orientation the model writes for.
        config: Full config dict; the ``planner`` section is used.

    Returns:
        A ScenePlan with at least one scene.

    Raises:
        PlanUnavailable: On any failure to obtain a usable plan.
    """
    cfg = planner_config(config)
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise PlanUnavailable("ANTHROPIC_API_KEY is not set")

    message = PLAN_PROMPT.format(
        orientation="vertical" if is_portrait(platform) else "horizontal",
        platform=platform,
        prompt=prompt,
    )
    try:
        import anthropic
        client = anthropic.Anthropic(
            api_key=api_key,
            timeout=float(cfg["timeout"]),
            max_retries=int(cfg["max_retries"]),
        )
        response = client.messages.create(
            model=cfg["model"],
            max_tokens=int(cfg["max_tokens"]),
            messages=[{"role": "user", "content": message}],
        )
        raw = response.content[0].text
    except Exception as e:
        raise PlanUnavailable(f"Scene plan request failed: {e}") from e

    plan = parse_plan_response(raw)
    console.print(
        f"[dim]LLM plan: {len(plan.scenes)} scenes, {plan.total_duration:.1f}s[/dim]"
    )
    return plan


def resolve_plan(request: RenderRequest, config: dict | None = None) -> ScenePlan:
    """Pick the plan to render: supplied, generated, or synthesized."""
    if request.has_plan:
        return request.scene_plan

    if planner_config(config)["enabled"]:
        try:
            return generate_scene_plan(request.prompt, request.platform, config)
        except PlanUnavailable as e:
            console.print(f"[yellow]{e}, using the fallback plan.[/yellow]")

    return synthesize_plan(request.prompt)
