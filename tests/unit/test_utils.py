"""Unit tests for utilities."""

import json
from datetime import timezone

import pytest
import structlog

from folioscribe.utils.ids import generate_block_id, generate_doc_id, generate_entry_id, utc_now
from folioscribe.utils.logging import configure_logging, get_logger, resolve_log_level


class TestIdGeneration:
    """Test identifier generation utilities."""

    def test_block_id_format(self):
        """Test block ids carry the block_ prefix and 16 hex chars."""
        block_id = generate_block_id()

        assert block_id.startswith("block_")
        assert len(block_id) == len("block_") + 16
        int(block_id[len("block_"):], 16)

    def test_block_ids_unique(self):
        """Test consecutive block ids differ."""
        assert len({generate_block_id() for _ in range(100)}) == 100

    def test_entry_id_uses_kind(self):
        """Test entry ids are prefixed with their kind."""
        assert generate_entry_id("project").startswith("project_")
        assert generate_entry_id("skill_category").startswith("skill_category_")

    def test_doc_id_format(self):
        """Test document ids carry the doc_ prefix."""
        assert generate_doc_id().startswith("doc_")

    def test_utc_now_is_aware(self):
        """Test timestamps are timezone-aware UTC."""
        assert utc_now().tzinfo == timezone.utc


class TestLogging:
    """Test the structlog JSON file setup."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    @pytest.mark.parametrize(
        "value,expected",
        [(None, "INFO"), ("debug", "DEBUG"), ("WARNING", "WARNING"), ("verbose", "INFO")],
    )
    def test_log_level_from_env(self, monkeypatch, value, expected):
        """Test FOLIOSCRIBE_LOG_LEVEL is normalized and unknown values fall back."""
        if value is None:
            monkeypatch.delenv("FOLIOSCRIBE_LOG_LEVEL", raising=False)
        else:
            monkeypatch.setenv("FOLIOSCRIBE_LOG_LEVEL", value)

        assert resolve_log_level() == expected

    def test_events_written_as_json_lines(self, monkeypatch, tmp_path):
        """Test events land in the log file with level, module and context."""
        monkeypatch.setenv("FOLIOSCRIBE_LOG_LEVEL", "WARNING")
        log_file = tmp_path / "logs" / "folioscribe.log"

        configure_logging(log_file)
        logger = get_logger("folioscribe.document.model")
        logger.info("block_committed", block_id="block_1")
        logger.warning("stale_block_reference", block_id="block_2")

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        event = json.loads(lines[0])
        assert event["event"] == "stale_block_reference"
        assert event["level"] == "warning"
        assert event["module"] == "folioscribe.document.model"
        assert event["block_id"] == "block_2"
        assert "timestamp" in event
