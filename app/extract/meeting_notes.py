import json
from typing import Any, Dict, Tuple

from app.models.schemas import MeetingData


def _safe_json_loads(raw: str) -> Dict[str, Any]:
    """Parse the model output as JSON. If parsing fails, tries the first {...} block (models sometimes wrap JSON in markdown fences); otherwise returns {}.
    Why available: Makes result parsing robust to mixed output so a completed job always yields a MeetingData."""
    raw = (raw or "").strip()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
        return data if isinstance(data, dict) else {}
    except ValueError:
        start = raw.find("{")
        end = raw.rfind("}")
        if start != -1 and end > start:
            try:
                data = json.loads(raw[start : end + 1])
                return data if isinstance(data, dict) else {}
            except ValueError:
                pass
    return {}


def _as_text(val: Any) -> str:
    return val.strip() if isinstance(val, str) else ""


def _as_list(val: Any) -> list[str]:
    if isinstance(val, str):
        return [val.strip()] if val.strip() else []
    if not isinstance(val, list):
        return []
    return [str(x).strip() for x in val if x is not None and str(x).strip()]


def parse_meeting_data(raw: str) -> MeetingData:
    """Turn the generated text into MeetingData; missing or mistyped fields become empty."""
    data = _safe_json_loads(raw)
    return MeetingData(
        transcription=_as_text(data.get("transcription")),
        summary=_as_text(data.get("summary")),
        conclusions=_as_list(data.get("conclusions")),
        action_items=_as_list(data.get("actionItems", data.get("action_items"))),
    )


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {it}" for it in items) if items else "_None_"


def to_markdown(meeting: MeetingData, title: str = "Meeting") -> Tuple[str, str]:
    """Render (transcription_markdown, notes_markdown) for export."""
    transcription_md = f"# {title}: Transcript\n\n{meeting.transcription or '_No transcription_'}\n"
    notes_md = (
        f"# {title}: Notes\n\n"
        f"## Summary\n\n{meeting.summary or '_No summary_'}\n\n"
        f"## Conclusions\n\n{_bullets(meeting.conclusions)}\n\n"
        f"## Action Items\n\n{_bullets(meeting.action_items)}\n"
    )
    return transcription_md, notes_md
