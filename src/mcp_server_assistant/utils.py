"""Saving generated reports and digests to the results directory."""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from .config import get_settings

logger = logging.getLogger(__name__)


def safe_filename(text: str, max_length: int = 30) -> str:
    return re.sub(r"[^\w\-]", "_", text)[:max_length]


def save_execution_result(
    content: str,
    prefix: str = "result",
    metadata: dict[str, Any] | None = None,
    results_dir: Path | None = None,
) -> Path:
    """Write a Markdown document, plus optional JSON metadata beside it.

    Args:
        content: Markdown text of the report or digest.
        prefix: Filename prefix (e.g. 'research_<topic>').
        metadata: Optional metadata saved to a .json file with the same stem.
        results_dir: Target directory; defaults to the configured results directory.

    Returns:
        Path to the saved Markdown file.
    """
    directory = results_dir or get_settings().get_results_dir()
    directory.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

    base = f"{timestamp}_{safe_filename(prefix)}"
    file_path = directory / f"{base}.md"
    suffix = 1
    while file_path.exists():
        file_path = directory / f"{base}_{suffix}.md"
        suffix += 1

    file_path.write_text(content, encoding="utf-8")

    if metadata:
        meta = {"timestamp": datetime.now().isoformat(), "file": file_path.name, **metadata}
        file_path.with_suffix(".json").write_text(json.dumps(meta, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info(f"Saved result to {file_path}")
    return file_path
