"""
Tests for log window classification.

Run: python3 -m pytest tests/test_log_analyzer.py -v
"""

from geoclue_mcp.core.diagnostics.log_analyzer import (
    LogCategory,
    analyze_logs,
    substring_classifier,
)


JOURNAL = """\
Oct 17 10:00:01 host exporter[812]: starting on :9090
Oct 17 10:00:02 host exporter[812]: WARNING geoclue slow to answer
Oct 17 10:00:03 host exporter[812]: location updated

Oct 17 10:00:04 host exporter[812]: Error: D-Bus call failed
Oct 17 10:00:05 host exporter[812]: warn and error in one line
"""


class TestClassifier:

    def test_error_case_insensitive(self):
        assert substring_classifier("ERROR something") is LogCategory.ERROR

    def test_warn_matches_warning(self):
        assert substring_classifier("Warning: low accuracy") is LogCategory.WARNING

    def test_error_wins_over_warn(self):
        assert substring_classifier("warn: error while reading") is LogCategory.ERROR

    def test_plain_line(self):
        assert substring_classifier("location updated") is None


class TestAnalyzeLogs:

    def test_counts(self):
        summary = analyze_logs(JOURNAL)

        assert summary.total_lines == 5
        assert summary.error_count == 2
        assert summary.warning_count == 1
        assert len(summary.flagged_entries) == 3

    def test_empty_window(self):
        summary = analyze_logs("")

        assert summary.total_lines == 0
        assert summary.error_count == 0
        assert summary.warning_count == 0
        assert "No recent errors or warnings found." in summary.to_text("geoclue")

    def test_journal_no_entries_marker(self):
        summary = analyze_logs("-- No entries --\n", 50)

        assert summary.total_lines == 0
        assert summary.recent_entries == []

    def test_journal_boot_marker_is_not_an_entry(self):
        text = (
            "Oct 17 09:59:58 host exporter[700]: error: shutting down\n"
            "-- Boot 3f2a9c0d1e --\n"
            "Oct 17 10:00:01 host exporter[812]: starting on :9090\n"
        )
        summary = analyze_logs(text, 2)

        assert summary.total_lines == 2
        assert summary.error_count == 1
        assert not any(line.startswith("--") for line in summary.recent_entries)

    def test_window_keeps_most_recent(self):
        summary = analyze_logs(JOURNAL, line_count=2)

        assert summary.total_lines == 2
        assert summary.error_count == 2
        assert summary.warning_count == 0

    def test_recent_and_flagged_are_capped(self):
        text = "\n".join(f"line {i} error" for i in range(30))
        summary = analyze_logs(text)

        assert len(summary.recent_entries) == 10
        assert len(summary.flagged_entries) == 5
        assert summary.flagged_entries[-1] == "line 29 error"

    def test_pluggable_classifier(self):
        def priority_classifier(line):
            return LogCategory.ERROR if "<3>" in line else None

        summary = analyze_logs("<3>failed\n<6>ok\nerror in text\n", classifier=priority_classifier)

        assert summary.error_count == 1
        assert summary.warning_count == 0

    def test_text_rendering(self):
        text = analyze_logs(JOURNAL).to_text("geoclue-prometheus-exporter")

        assert text.startswith("Log Analysis for geoclue-prometheus-exporter:")
        assert "- Errors found: 2" in text
        assert "Recent errors/warnings:" in text
