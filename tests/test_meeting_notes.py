"""Unit tests for parsing generated meeting JSON and rendering markdown."""
from app.extract.meeting_notes import parse_meeting_data, to_markdown
from app.models.schemas import MeetingData


def test_parse_full_result():
    raw = '{"transcription": "Hola a todos", "summary": "Resumen", "conclusions": ["c1", "c2"], "actionItems": ["Ana: enviar informe"]}'
    m = parse_meeting_data(raw)
    assert m.transcription == "Hola a todos"
    assert m.summary == "Resumen"
    assert m.conclusions == ["c1", "c2"]
    assert m.action_items == ["Ana: enviar informe"]


def test_parse_empty_object_and_blank():
    assert parse_meeting_data("{}") == MeetingData()
    assert parse_meeting_data("") == MeetingData()


def test_parse_markdown_fenced_json():
    raw = '```json\n{"summary": "ok", "conclusions": "single"}\n```'
    m = parse_meeting_data(raw)
    assert m.summary == "ok"
    assert m.conclusions == ["single"]


def test_parse_garbage_and_wrong_types():
    assert parse_meeting_data("not json at all") == MeetingData()
    m = parse_meeting_data('{"summary": 5, "actionItems": ["a", null, "  ", 3]}')
    assert m.summary == ""
    assert m.action_items == ["a", "3"]


def test_to_markdown_sections():
    m = MeetingData(transcription="t", summary="s", conclusions=["c"], action_items=[])
    transcript_md, notes_md = to_markdown(m, title="Weekly")
    assert transcript_md.startswith("# Weekly: Transcript")
    assert "## Summary\n\ns" in notes_md
    assert "- c" in notes_md
    assert "## Action Items\n\n_None_" in notes_md


def test_meeting_data_serializes_action_items_alias():
    m = MeetingData(action_items=["x"])
    assert m.model_dump(by_alias=True)["actionItems"] == ["x"]
