"""
Tests for exporter exposition parsing.

Run: python3 -m pytest tests/test_exporter.py -v
"""

from geoclue_mcp.core.exporter import filter_metrics, has_geoclue_metrics, parse_location

from conftest import SAMPLE_METRICS


class TestParseLocation:

    def test_minimal_exposition(self):
        text = "up 1\ngeoclue_latitude 52.5\ngeoclue_longitude 13.4\n"
        assert parse_location(text) == {
            'latitude': 52.5,
            'longitude': 13.4,
            'service_up': True,
        }

    def test_comments_and_labels(self):
        location = parse_location(SAMPLE_METRICS)

        assert location['latitude'] == 52.5
        assert location['accuracy'] == 25.0
        assert location['service_up'] is True
        assert 'altitude' not in location

    def test_service_down(self):
        assert parse_location("up 0\n") == {'service_up': False}

    def test_non_numeric_value_skipped(self):
        assert parse_location("geoclue_latitude NaNx\n") == {}

    def test_empty_text(self):
        assert parse_location("") == {}


class TestFilterMetrics:

    def test_filters_and_skips_comments(self):
        lines = filter_metrics(SAMPLE_METRICS, "geoclue_latitude")

        assert lines == ["geoclue_latitude 52.5"]

    def test_default_prefix(self):
        lines = filter_metrics(SAMPLE_METRICS)

        assert len(lines) == 3
        assert all(line.startswith("geoclue_") for line in lines)


class TestHasGeoclueMetrics:

    def test_detects_prefix(self):
        assert has_geoclue_metrics(SAMPLE_METRICS)
        assert not has_geoclue_metrics("up 1\n")
