#!/usr/bin/env python3
"""Print the effective pipeline limits and model fallback chains (from config). Run from repo root: python scripts/print_limits.py"""
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from app.core.config import settings
from app.extract.model_chains import fallback_table


def main():
    """Print upload block size, polling budget, retry policy, storage backend and fallback chains."""
    print("Pipeline limits")
    print("---------------")
    print(f"  UPLOAD_BLOCK_BYTES       = {settings.upload_block_bytes} ({settings.upload_block_bytes / (1024 * 1024):.1f} MiB per upload request)")
    print(f"  POLL_INTERVAL_SECONDS    = {settings.poll_interval_seconds}")
    print(f"  POLL_MAX_ATTEMPTS        = {settings.poll_max_attempts} (~{settings.poll_interval_seconds * settings.poll_max_attempts:.0f} s before timeout)")
    print(f"  GENERATION_MAX_RETRIES   = {settings.generation_max_retries} per model (delay {settings.retry_base_delay_seconds}s x attempt)")
    print(f"  STORE_BACKEND            = {settings.store_backend}")
    print(f"  DEFAULT_MODEL            = {settings.default_model}")
    print("")
    print("Fallback chains")
    print("---------------")
    for model, chain in sorted(fallback_table().items()):
        print(f"  {model:24} -> {' -> '.join(chain)}")
    print("")
    print("Env: see .env.example")


if __name__ == "__main__":
    main()
