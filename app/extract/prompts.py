from typing import Any, Dict

from app.models.schemas import ProcessingMode
from app.prompts.loader import get_system_prompt, get_task_prompt, get_user_prompt

PROMPT_COMPONENT = "meeting_notes"

# Default filtering suppresses legitimate output on informal speech.
HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
SAFETY_SETTINGS = [{"category": c, "threshold": "BLOCK_NONE"} for c in HARM_CATEGORIES]


def build_generation_payload(
    file_uri: str,
    mime_type: str,
    mode: ProcessingMode,
    max_output_tokens: int = 8192,
    prompt_version: str | None = None,
) -> Dict[str, Any]:
    """Build the generateContent request body: the uploaded file plus the mode's task text, the meeting-secretary system instruction, JSON output config, and permissive safety settings.
    Why available: Shared by every model in the fallback chain so each attempt sends the identical request."""
    mode = ProcessingMode(mode)
    task = get_task_prompt(PROMPT_COMPONENT, mode.value, version=prompt_version)
    user_text = get_user_prompt(PROMPT_COMPONENT, version=prompt_version).replace("<<TASK>>", task)
    system_text = get_system_prompt(PROMPT_COMPONENT, version=prompt_version)

    return {
        "contents": [
            {
                "parts": [
                    {"file_data": {"file_uri": file_uri, "mime_type": mime_type}},
                    {"text": user_text},
                ]
            }
        ],
        "system_instruction": {"parts": [{"text": system_text}]},
        "generation_config": {
            "response_mime_type": "application/json",
            "max_output_tokens": max_output_tokens,
        },
        "safety_settings": [dict(s) for s in SAFETY_SETTINGS],
    }
