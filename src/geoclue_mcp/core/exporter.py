"""Parsing of the exporter's text exposition format."""

from typing import Any, Dict, List, Optional, Tuple

GEOCLUE_PREFIX = "geoclue_"

LOCATION_GAUGES = {
    'geoclue_latitude': 'latitude',
    'geoclue_longitude': 'longitude',
    'geoclue_accuracy': 'accuracy',
    'geoclue_altitude': 'altitude',
}


def _split_sample(line: str) -> Optional[Tuple[str, str]]:
    """Split ``name{labels} value [timestamp]`` into (name, value)."""
    line = line.strip()
    if not line or line.startswith('#'):
        return None
    if '{' in line:
        name, _, rest = line.partition('{')
        _, _, rest = rest.partition('}')
        parts = rest.split()
    else:
        name, *parts = line.split()
    if not parts:
        return None
    return name.strip(), parts[0]


def parse_location(metrics_text: str) -> Dict[str, Any]:
    """
    Extract the location gauges and the ``up`` gauge.

    Gauges that are absent or not numeric are left out of the result.
    """
    location: Dict[str, Any] = {}
    for line in metrics_text.splitlines():
        sample = _split_sample(line)
        if sample is None:
            continue
        name, raw = sample
        try:
            value = float(raw)
        except ValueError:
            continue
        if name in LOCATION_GAUGES:
            location[LOCATION_GAUGES[name]] = value
        elif name == 'up':
            location['service_up'] = value == 1
    return location


def filter_metrics(metrics_text: str, metric_filter: str = GEOCLUE_PREFIX) -> List[str]:
    """Sample lines (comments excluded) that contain ``metric_filter``."""
    return [
        line for line in metrics_text.splitlines()
        if metric_filter in line and not line.startswith('#')
    ]


def has_geoclue_metrics(metrics_text: str) -> bool:
    return GEOCLUE_PREFIX in metrics_text
