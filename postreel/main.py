#!/usr/bin/env python3
"""
postreel - procedural preview videos for social posts

Usage:
    postreel render -p "5 AI tools" --platform YouTube   # Render a preview video
    postreel render --plan plan.json --platform TikTok   # Render a supplied plan
    postreel plan -p "5 AI tools"                        # Print the resolved scene plan
    postreel frame 45 -p "5 AI tools" -o frame.png       # Write one composited frame
    postreel trending                                    # Show scored trending topics
    postreel trending --render                           # Render the top topic
"""

import json
from pathlib import Path

import click
from PIL import Image
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from postreel.config import PROJECT_ROOT, load_config, video_config
from postreel.errors import PostreelError
from postreel.models import (
    PLATFORMS,
    RenderRequest,
    ScenePlan,
    StyleProfile,
    default_connection_policy,
)
from postreel.pipeline import build_compositor, build_session
from postreel.plan_generator import resolve_plan
from postreel.trending import load_topics, rank_topics, select_trending

console = Console()


def _read_json(path: str | None) -> dict | None:
    if not path:
        return None
    with open(path) as f:
        return json.load(f)


def _build_request(prompt, platform, plan_path, style_path) -> RenderRequest:
    plan_data = _read_json(plan_path)
    return RenderRequest(
        platform=platform,
        prompt=prompt or "",
        scene_plan=ScenePlan.from_dict(plan_data) if plan_data else None,
        style_override=StyleProfile.from_dict(_read_json(style_path)),
    )


def _output_dir(config: dict, override: str | None) -> Path:
    if override:
        out = Path(override)
    else:
        out = PROJECT_ROOT / video_config(config).get("output_dir", "output")
    out.mkdir(parents=True, exist_ok=True)
    return out


def _fail(error: Exception):
    console.print(f"[red]{error}[/red]")
    raise SystemExit(1)


def _render(request: RenderRequest, config: dict, output_dir: str | None,
            connected: tuple[str, ...]) -> Path:
    session = build_session(
        request, config, is_connected=default_connection_policy(connected)
    )
    with session.render() as artifact:
        return artifact.save(_output_dir(config, output_dir) / artifact.filename)


request_options = [
    click.option("--prompt", "-p", default="", help="What the video is about"),
    click.option("--platform", default="YouTube", show_default=True,
                 help=f"Target platform ({', '.join(PLATFORMS)})"),
    click.option("--plan", "plan_path", type=click.Path(exists=True, dir_okay=False),
                 help="Scene plan JSON file"),
    click.option("--style", "style_path", type=click.Path(exists=True, dir_okay=False),
                 help="Style override JSON file"),
]


def with_request_options(func):
    for option in reversed(request_options):
        func = option(func)
    return func


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to config.yaml")
@click.pass_context
def cli(ctx, config_path):
    """postreel: procedural preview videos for social posts"""
    ctx.obj = load_config(Path(config_path) if config_path else None)


@cli.command()
@with_request_options
@click.option("--output-dir", "-o", default=None, help="Where to write the video")
@click.option("--connected", multiple=True,
              help="Platforms with a connected account (repeatable)")
@click.pass_obj
def render(config, prompt, platform, plan_path, style_path, output_dir, connected):
    """Render a preview video for a prompt or a scene plan"""
    try:
        request = _build_request(prompt, platform, plan_path, style_path)
        path = _render(request, config, output_dir, connected)
    except (PostreelError, ValueError, OSError) as e:
        _fail(e)
    console.print(f"[bold green]Saved:[/] {path}")


@cli.command()
@with_request_options
@click.pass_obj
def plan(config, prompt, platform, plan_path, style_path):
    """Print the scene plan that would be rendered, as JSON"""
    try:
        request = _build_request(prompt, platform, plan_path, style_path)
        request.validate()
        resolved = resolve_plan(request, config)
    except (PostreelError, ValueError, OSError) as e:
        _fail(e)
    click.echo(json.dumps(resolved.to_dict(), indent=2))


@cli.command()
@click.argument("frame_number", type=int)
@with_request_options
@click.option("--output", "-o", default="frame.png", show_default=True,
              help="PNG file to write")
@click.pass_obj
def frame(config, frame_number, prompt, platform, plan_path, style_path, output):
    """Write a single composited frame as a PNG"""
    try:
        request = _build_request(prompt, platform, plan_path, style_path)
        request.validate()
        compositor = build_compositor(request, config)
        if not 0 <= frame_number < compositor.total_frames:
            raise ValueError(
                f"Frame {frame_number} is outside 0..{compositor.total_frames - 1}"
            )
        pixels = compositor.render_frame(frame_number)
        Image.fromarray(pixels).save(output)
    except (PostreelError, ValueError, OSError) as e:
        _fail(e)
    state = compositor.state_for(frame_number)
    console.print(
        f"[green]Frame {frame_number}[/green] (scene {state.scene_index + 1}, "
        f"{state.scene_progress:.0%}) written to {output}"
    )


@cli.command()
@click.option("--render", "do_render", is_flag=True,
              help="Render a preview for the top topic")
@click.option("--output-dir", "-o", default=None, help="Where to write the video")
@click.pass_obj
def trending(config, do_render, output_dir):
    """Score trending topics and optionally render the winner"""
    topics = load_topics(config)
    table = Table(title="Trending Topics")
    table.add_column("Topic", style="cyan")
    table.add_column("Platform")
    table.add_column("Velocity", justify="right")
    table.add_column("Novelty", justify="right")
    table.add_column("Score", justify="right", style="bold")
    for t in rank_topics(topics):
        table.add_row(t.topic, t.platform, f"{t.velocity:.2f}",
                      f"{t.novelty:.2f}", f"{t.score:.2f}")
    console.print(table)

    top = select_trending(topics)
    if top is None:
        console.print("[yellow]No trending topics configured.[/yellow]")
        return
    console.print(Panel.fit(f"[bold cyan]{top.topic}[/bold cyan]", title="Selected"))

    if not do_render:
        return
    try:
        request = RenderRequest(platform=top.platform, prompt=top.prompt)
        path = _render(request, config, output_dir, connected=())
    except (PostreelError, ValueError, OSError) as e:
        _fail(e)
    console.print(f"[bold green]Saved:[/] {path}")


if __name__ == "__main__":
    cli()
