"""Environment-driven settings for the genotype web service."""
from __future__ import annotations

import os
from pathlib import Path

DB_DIR = Path(os.environ.get("STACKS_DB_DIR", str(Path(__file__).parent / "data")))
DEFAULT_DATABASE = os.environ.get("STACKS_DEFAULT_DB", "radtags")

# External program that runs the export and emails the submitter
EXPORT_CMD = os.environ.get("STACKS_EXPORT_CMD", "export_sql.pl")

GRID_COLUMNS = int(os.environ.get("STACKS_GRID_COLUMNS", "10"))
GRID_SIZE_FROM_BATCH = os.environ.get("STACKS_GRID_SIZE_FROM_BATCH", "").strip().lower() in ("1", "true", "yes")

SITE_TITLE = os.environ.get("STACKS_SITE_TITLE", "Stacks")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
