"""API key normalization: trim, unquote and percent-encode the key before it is embedded in backend URLs."""
import re
from urllib.parse import quote

_QUOTES = ('"', "'")
_KEY_PARAM_RE = re.compile(r"[?&]key=")


def normalize_api_key(raw: str | None) -> str:
    """Return the API key ready for use as a URL query value: surrounding whitespace trimmed, one pair of matching surrounding quotes removed, then percent-encoded. Returns "" for a missing key.
    Why available: Keys pasted into env files often carry stray whitespace or quotes, and special characters would otherwise break the query string."""
    key = (raw or "").strip()
    if len(key) >= 2 and key[0] == key[-1] and key[0] in _QUOTES:
        key = key[1:-1].strip()
    return quote(key, safe="")


def with_key(url: str, encoded_key: str) -> str:
    """Append key=<encoded_key> to url unless the url already carries a key parameter."""
    if _KEY_PARAM_RE.search(url):
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}key={encoded_key}"
