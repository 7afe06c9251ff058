"""Project configuration loaded from config.yaml."""

from pathlib import Path

import yaml
from dotenv import load_dotenv
from rich.console import Console

load_dotenv()
console = Console()

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config.yaml"


def load_config(config_path: Path | None = None) -> dict:
    """Load the full config dict. A missing file yields an empty config."""
    path = Path(config_path) if config_path else CONFIG_PATH
    if not path.exists():
        console.print(f"[dim]No config at {path}, using defaults.[/dim]")
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def video_config(config: dict | None) -> dict:
    """Return the ``video`` section of a config dict."""
    return (config or {}).get("video", {}) or {}
