"""Tests for the shared operation/batch log helpers."""

import logging

import pytest

from reachsync.infrastructure.observability.logger_template import (
    log_batch_summary,
    log_operation,
)

LOGGER_NAME = "reachsync.tests.logger_template"


class TestLogOperation:
    async def test_started_and_completed(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        caplog.set_level(logging.INFO, logger=LOGGER_NAME)

        async with log_operation(logger, "artist_sync", external_id="ext-x") as outcome:
            outcome["warnings"] = 2

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["artist_sync.started", "artist_sync.completed"]
        completed = caplog.records[-1]
        assert completed.external_id == "ext-x"  # type: ignore[attr-defined]
        assert completed.warnings == 2  # type: ignore[attr-defined]
        assert completed.duration_ms >= 0  # type: ignore[attr-defined]

    async def test_failure_is_logged_and_reraised(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        caplog.set_level(logging.INFO, logger=LOGGER_NAME)

        with pytest.raises(KeyError):
            async with log_operation(logger, "artist_sync"):
                raise KeyError("boom")

        failed = caplog.records[-1]
        assert failed.getMessage() == "artist_sync.failed"
        assert failed.levelno == logging.ERROR
        assert failed.error_type == "KeyError"  # type: ignore[attr-defined]
        assert failed.exc_info is not None


class TestLogBatchSummary:
    def test_all_ok_is_info(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger=LOGGER_NAME)

        log_batch_summary(logging.getLogger(LOGGER_NAME), "provider_fetch", succeeded=5, failed=0)

        assert caplog.records[-1].levelno == logging.INFO

    def test_any_failure_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger=LOGGER_NAME)

        log_batch_summary(
            logging.getLogger(LOGGER_NAME), "provider_fetch", succeeded=7, failed=3, external_id="a"
        )

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.failed == 3  # type: ignore[attr-defined]
        assert "7 ok, 3 failed" in record.getMessage()
