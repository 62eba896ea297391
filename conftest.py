"""Root conftest: seeds the test environment before any relay_service import."""
from __future__ import annotations

import os
from pathlib import Path

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for line in _env_test.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())

# The change feed needs a live Redis; tests exercise it through fakes.
os.environ.setdefault("CHANGE_FEED_ENABLED", "false")
