"""
Versioned prompt loader: reads prompts from app/prompts/{version}/{component}.yaml.
Use PROMPT_VERSION (default v1) to select version.
"""
from pathlib import Path

import yaml

# Base path: app/prompts/ (next to this file)
_PROMPTS_DIR = Path(__file__).resolve().parent


def _load_yaml(component: str, version: str | None) -> dict:
    if version is None:
        from app.core.config import settings
        version = settings.prompt_version

    path = _PROMPTS_DIR / version / f"{component}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")

    with path.open() as f:
        return yaml.safe_load(f) or {}


def load_prompts(
    component: str,
    version: str | None = None,
) -> dict[str, str]:
    """Load prompt templates for a component. Returns dict with keys "system", "user" (user optional); values may contain placeholders like <<TASK>>.
    Why available: Centralizes versioned prompts so the generation instructions can be updated without code changes."""
    data = _load_yaml(component, version)

    out: dict[str, str] = {}
    for key in ("system", "user"):
        val = data.get(key)
        if val is not None:
            out[key] = val.strip() if isinstance(val, str) else str(val).strip()
    return out


def get_system_prompt(component: str, version: str | None = None) -> str:
    """Load and return the 'system' prompt template for the given component (e.g. meeting_notes). Raises ValueError if the component has no system prompt in the specified version."""
    prompts = load_prompts(component, version=version)
    if "system" not in prompts:
        raise ValueError(f"Component {component} has no 'system' prompt in version {version}")
    return prompts["system"]


def get_user_prompt(component: str, version: str | None = None) -> str:
    """Load and return the 'user' prompt template for the given component. Raises ValueError if the component has no user prompt in the specified version."""
    prompts = load_prompts(component, version=version)
    if "user" not in prompts:
        raise ValueError(f"Component {component} has no 'user' prompt in version {version}")
    return prompts["user"]


def get_task_prompt(component: str, task: str, version: str | None = None) -> str:
    """Return the per-task instruction (e.g. processing mode FULL / NOTES_ONLY / TRANSCRIPT_ONLY) from the component's 'tasks' mapping."""
    tasks = _load_yaml(component, version).get("tasks") or {}
    if task not in tasks:
        raise ValueError(f"Component {component} has no task {task!r} in version {version}")
    return str(tasks[task]).strip()
