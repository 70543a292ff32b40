"""Tests for saving results to disk."""

import json

from mcp_server_assistant.utils import safe_filename, save_execution_result


def test_safe_filename():
    assert safe_filename("research_AI / ML: what?") == "research_AI___ML__what_"
    assert len(safe_filename("x" * 100)) == 30


def test_save_markdown_and_metadata(tmp_path):
    path = save_execution_result("# Report", prefix="research_AI", metadata={"topic": "AI"}, results_dir=tmp_path)

    assert path.parent == tmp_path
    assert path.suffix == ".md"
    assert path.read_text(encoding="utf-8") == "# Report"

    meta = json.loads(path.with_suffix(".json").read_text(encoding="utf-8"))
    assert meta["topic"] == "AI"
    assert meta["file"] == path.name


def test_save_without_metadata(tmp_path):
    path = save_execution_result("digest", prefix="digest", results_dir=tmp_path / "nested")

    assert path.exists()
    assert not path.with_suffix(".json").exists()


def test_distinct_files(tmp_path):
    first = save_execution_result("a", prefix="same", results_dir=tmp_path)
    second = save_execution_result("b", prefix="same", results_dir=tmp_path)
    assert first != second
