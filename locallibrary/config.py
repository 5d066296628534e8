# Runtime settings, read once from the environment at import time.

import os
from pathlib import Path
from typing import Optional

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"

SITE_TITLE = os.environ.get("LOCALLIBRARY_TITLE", "Local Library")
LOG_LEVEL = os.environ.get("LOCALLIBRARY_LOG_LEVEL", "INFO").upper()

# Optional JSON file used to seed the in-memory store on startup.
_fixture = os.environ.get("LOCALLIBRARY_FIXTURE", "").strip()
FIXTURE_FILE: Optional[Path] = Path(_fixture) if _fixture else None
