"""Unit tests for API key normalization and URL key attachment."""
from app.core.credentials import normalize_api_key, with_key
from app.core.gemini_client import GeminiEndpoints


def test_normalize_trims_whitespace():
    assert normalize_api_key("  abc123 \n") == "abc123"


def test_normalize_strips_surrounding_quotes():
    assert normalize_api_key('"abc123"') == "abc123"
    assert normalize_api_key("'abc123'") == "abc123"
    assert normalize_api_key('  "abc123"  ') == "abc123"


def test_normalize_keeps_unbalanced_quote():
    assert normalize_api_key('"abc') == "%22abc"


def test_normalize_percent_encodes_special_characters():
    assert normalize_api_key("a+b/c=d&e") == "a%2Bb%2Fc%3Dd%26e"


def test_normalize_empty():
    assert normalize_api_key(None) == ""
    assert normalize_api_key("   ") == ""
    assert normalize_api_key('""') == ""


def test_with_key_appends_with_correct_separator():
    assert with_key("https://x/upload", "k") == "https://x/upload?key=k"
    assert with_key("https://x/upload?upload_id=1", "k") == "https://x/upload?upload_id=1&key=k"


def test_with_key_does_not_duplicate_existing_key():
    assert with_key("https://x/upload?key=abc", "k") == "https://x/upload?key=abc"
    assert with_key("https://x/upload?a=1&key=abc", "k") == "https://x/upload?a=1&key=abc"


def test_with_key_ignores_params_merely_ending_in_key():
    assert with_key("https://x/upload?monkey=1", "k") == "https://x/upload?monkey=1&key=k"


def test_endpoints_build_authenticated_urls():
    ep = GeminiEndpoints(base_url="https://g.test", encoded_key="k%2B1")
    assert ep.upload_start_url() == "https://g.test/upload/v1beta/files?key=k%2B1"
    assert ep.generate_url("gemini-2.5-flash") == "https://g.test/v1beta/models/gemini-2.5-flash:generateContent?key=k%2B1"
    assert ep.file_url("https://g.test/v1beta/files/abc") == "https://g.test/v1beta/files/abc?key=k%2B1"
