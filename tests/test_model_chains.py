import pytest

from app.extract.model_chains import FALLBACK_CHAINS, fallback_table, load_chains_file, resolve_chain


def test_builtin_chain_starts_with_requested_model():
    for model, chain in FALLBACK_CHAINS.items():
        assert chain[0] == model
        assert len(chain) == 3
    assert resolve_chain("gemini-3-pro-preview", FALLBACK_CHAINS) == [
        "gemini-3-pro-preview", "gemini-2.0-flash", "gemini-2.5-flash",
    ]


def test_unknown_model_has_single_entry_chain():
    assert resolve_chain("my-custom-model", FALLBACK_CHAINS) == ["my-custom-model"]


def test_chains_file_overrides_and_extends(tmp_path):
    path = tmp_path / "chains.yaml"
    path.write_text(
        "gemini-2.5-flash:\n  - gemini-2.5-flash\n  - gemini-2.0-flash-lite\n"
        "custom-model:\n  - custom-model\n  - gemini-2.5-flash\n",
        encoding="utf-8",
    )
    table = fallback_table(str(path))
    assert table["gemini-2.5-flash"] == ["gemini-2.5-flash", "gemini-2.0-flash-lite"]
    assert table["custom-model"] == ["custom-model", "gemini-2.5-flash"]
    assert table["gemini-2.5-pro"] == FALLBACK_CHAINS["gemini-2.5-pro"]


@pytest.mark.parametrize("content", ["- just\n- a list\n", "m: not-a-list\n", "m: []\n"])
def test_malformed_chains_file_rejected(tmp_path, content):
    path = tmp_path / "chains.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_chains_file(path)
