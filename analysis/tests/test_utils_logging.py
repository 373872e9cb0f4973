"""Tests for logger setup helpers."""

import logging

from mbiome_ml.utils.logging import log_section, setup_logger, verbosity_to_level


class TestSetupLogger:
    def teardown_method(self):
        logger = logging.getLogger("mbiome_ml_test")
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    def test_no_duplicate_handlers(self):
        setup_logger("mbiome_ml_test")
        logger = setup_logger("mbiome_ml_test")
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logger("mbiome_ml_test", log_file=log_file)
        log_section(logger, "Section")
        for handler in logger.handlers:
            handler.flush()

        text = log_file.read_text()
        assert "Section" in text
        assert "=" * 80 in text

    def test_verbosity_to_level(self):
        assert verbosity_to_level(0) == logging.INFO
        assert verbosity_to_level(2) == logging.DEBUG
