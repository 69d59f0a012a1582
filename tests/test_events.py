from __future__ import annotations

import threading
from datetime import datetime

import pytest

from gpusetup.events import (
    CallbackReporter,
    ConsoleBuffer,
    NullReporter,
    ProgressUpdate,
    QueueReporter,
    StatusType,
    format_log_line,
    log,
    progress,
)

NOON = datetime(2024, 5, 1, 12, 0, 5)


class TestStatusType:
    def test_tags_match_console_prefixes(self):
        assert StatusType.SUCCESS.tag == "[OK]"
        assert StatusType.WARNING.tag == "[WARN]"
        assert StatusType.ERROR.tag == "[ERROR]"
        assert StatusType.INFO.tag == "[INFO]"
        assert StatusType.UNKNOWN.tag == "[*]"

    def test_every_status_has_a_style(self):
        assert {status.style for status in StatusType} == {
            "muted",
            "ok",
            "warn",
            "error",
            "info",
        }


class TestProgressUpdate:
    def test_log_only_update_does_not_move_bar(self):
        update = ProgressUpdate(log_message="hello")
        assert not update.moves_bar
        assert update.log_type is StatusType.INFO

    def test_message_moves_bar(self):
        assert ProgressUpdate(progress=40, message="Installing...").moves_bar

    @pytest.mark.parametrize(
        "percent, expected", [(-5, 0.0), (0, 0.0), (50, 0.5), (100, 1.0), (130, 1.0)]
    )
    def test_fraction_is_clamped(self, percent, expected):
        assert ProgressUpdate(progress=percent).fraction == expected


class TestReporters:
    def test_null_reporter_accepts_anything(self):
        NullReporter().post(ProgressUpdate(log_message="ignored"))

    def test_callback_reporter_forwards(self):
        seen = []
        reporter = CallbackReporter(seen.append)
        log(reporter, "Checking driver status...")
        progress(reporter, 25.0, "Installing prerequisites...", "Installing required packages...")

        assert seen[0] == ProgressUpdate(log_message="Checking driver status...")
        assert seen[1].progress == 25.0
        assert seen[1].message == "Installing prerequisites..."
        assert seen[1].log_message == "Installing required packages..."

    def test_queue_reporter_preserves_order_across_threads(self):
        reporter = QueueReporter()

        def worker():
            for index in range(50):
                log(reporter, f"line {index}")

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        drained = [update.log_message for update in reporter.drain()]
        assert drained == [f"line {index}" for index in range(50)]
        assert reporter.empty()

    def test_drain_on_empty_queue_yields_nothing(self):
        assert list(QueueReporter().drain()) == []


class TestConsole:
    def test_format_log_line(self):
        line = format_log_line("Command completed successfully", StatusType.SUCCESS, NOON)
        assert line == "[12:00:05] [OK] Command completed successfully"

    def test_buffer_drops_oldest_lines(self):
        buffer = ConsoleBuffer(max_lines=3)
        for index in range(5):
            buffer.append(f"message {index}", StatusType.INFO, NOON)

        assert len(buffer) == 3
        assert buffer.lines()[0] == "[12:00:05] [INFO] message 2"
        assert buffer.text().endswith("[12:00:05] [INFO] message 4\n")

    def test_append_returns_formatted_line(self):
        buffer = ConsoleBuffer()
        assert (
            buffer.append("Unable to detect distribution codename", StatusType.WARNING, NOON)
            == "[12:00:05] [WARN] Unable to detect distribution codename"
        )

    def test_buffer_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            ConsoleBuffer(max_lines=0)
