"""
Unit tests for src/common/logger.py
"""

import json
import logging

import pytest

from src.common.logger import (
    JsonLineFormatter,
    PipelineLogger,
    get_logger,
    is_debug_mode,
    set_global_debug_mode,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging_state():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    debug = is_debug_mode()
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    set_global_debug_mode(debug)


class TestPipelineLogger:
    """Tests for run/stage prefixes."""

    def test_prefix_with_run_and_stage(self, caplog):
        log = get_logger("test.prefix", run_id="op_compensation-analysis_abc", stage="synthesis")
        with caplog.at_level(logging.INFO, logger="test.prefix"):
            log.info("Parsed analysis")
        assert "[run:op_compe] [synthesis] Parsed analysis" in caplog.text

    def test_no_prefix_without_context(self, caplog):
        log = get_logger("test.plain")
        with caplog.at_level(logging.INFO, logger="test.plain"):
            log.info("hello")
        assert caplog.records[-1].getMessage() == "hello"

    def test_with_stage_keeps_run(self):
        log = PipelineLogger("test.stage", run_id="abcdef123", stage="assembly")
        sibling = log.with_stage("scoring")
        assert sibling.run_id == "abcdef123"
        assert sibling.stage == "scoring"

    def test_debug_mode_sets_level(self):
        log = get_logger("test.debug", debug_mode=True)
        assert log.level == logging.DEBUG

    def test_global_debug_mode(self):
        set_global_debug_mode(True)
        assert is_debug_mode() is True
        assert get_logger("test.global").level == logging.DEBUG


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_replaces_root_handlers(self):
        setup_logging(level="WARNING")
        root = logging.getLogger()

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_json_format(self):
        setup_logging(level="INFO", format="json")
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonLineFormatter)

    def test_json_line_content(self):
        record = logging.LogRecord("pipeline", logging.ERROR, __file__, 1, "Cache %s", ("down",), None)
        line = json.loads(JsonLineFormatter().format(record))

        assert line["level"] == "ERROR"
        assert line["name"] == "pipeline"
        assert line["message"] == "Cache down"
