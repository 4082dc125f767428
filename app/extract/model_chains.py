"""
Model fallback chains: requested model -> ordered list of models to try when the
preferred one is overloaded. Extra or replacement chains can be supplied in a YAML
file (MODEL_CHAINS_FILE) mapping model id to a list of model ids.
"""
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from app.core.config import settings

FALLBACK_CHAINS: Dict[str, List[str]] = {
    "gemini-3-pro-preview": ["gemini-3-pro-preview", "gemini-2.0-flash", "gemini-2.5-flash"],
    "gemini-2.5-pro": ["gemini-2.5-pro", "gemini-2.0-flash", "gemini-2.5-flash"],
    "gemini-2.5-flash": ["gemini-2.5-flash", "gemini-2.0-flash", "gemini-2.5-flash-lite"],
    "gemini-2.5-flash-lite": ["gemini-2.5-flash-lite", "gemini-2.0-flash-lite", "gemini-2.5-flash"],
    "gemini-2.0-flash": ["gemini-2.0-flash", "gemini-2.5-flash", "gemini-2.5-flash-lite"],
    "gemini-2.0-flash-lite": ["gemini-2.0-flash-lite", "gemini-2.5-flash-lite", "gemini-2.0-flash"],
}


def load_chains_file(path: str | Path) -> Dict[str, List[str]]:
    """Read a YAML mapping of model id -> list of model ids. Raises ValueError on a malformed file."""
    with Path(path).open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Model chains file must be a mapping: {path}")
    out: Dict[str, List[str]] = {}
    for model, chain in data.items():
        if not isinstance(chain, list) or not chain or not all(isinstance(m, str) and m.strip() for m in chain):
            raise ValueError(f"Chain for {model!r} must be a non-empty list of model ids")
        out[str(model)] = [m.strip() for m in chain]
    return out


def fallback_table(chains_file: Optional[str] = None) -> Dict[str, List[str]]:
    """Built-in chains merged with the optional YAML override file (file entries win)."""
    table = {k: list(v) for k, v in FALLBACK_CHAINS.items()}
    path = settings.model_chains_file if chains_file is None else chains_file
    if path:
        table.update(load_chains_file(path))
    return table


def resolve_chain(model: str, table: Optional[Dict[str, List[str]]] = None) -> List[str]:
    """Return the ordered models to try for `model`; [model] when no chain is configured."""
    chains = fallback_table() if table is None else table
    chain = chains.get(model)
    return list(chain) if chain else [model]
