"""
Tests for the dashboard, alerts and performance views.

Run: python3 -m pytest tests/test_views.py -v
"""

from unittest.mock import patch

import psutil

from geoclue_mcp.core.diagnostics import views
from geoclue_mcp.core.diagnostics.views import ViewTarget
from geoclue_mcp.errors import EndpointError

from conftest import SAMPLE_METRICS

FETCH = 'geoclue_mcp.core.diagnostics.probes.fetch_metrics'
ACTIVE_STATE = 'geoclue_mcp.utils.service_check.get_active_state'
ENABLED_STATE = 'geoclue_mcp.utils.service_check.get_enabled_state'


def _states(service='active', dependency='active'):
    def state(name):
        return dependency if name == 'geoclue' else service
    return state


def _alerts(state='active', dependency='active', metrics=SAMPLE_METRICS):
    return views.build_alerts(ViewTarget(), state=state, dependency=dependency, metrics=metrics)


class TestAlerts:

    def test_no_alerts_when_healthy(self):
        assert _alerts() == []

    def test_service_inactive_is_critical(self):
        alerts = _alerts(state='failed')

        assert [(a.severity.value, a.message) for a in alerts] == [('critical', "Service is failed")]

    def test_endpoint_down_is_critical(self):
        alerts = _alerts(metrics=None)

        assert alerts[0].message == "Metrics endpoint not accessible"

    def test_missing_geoclue_metrics_and_dependency_are_warnings(self):
        alerts = _alerts(dependency='inactive', metrics="up 1\n")

        assert {a.severity.value for a in alerts} == {'warning'}
        assert len(alerts) == 2

    def test_unknown_service_state(self):
        alerts = _alerts(state=None)

        assert alerts[0].message == "Cannot determine service status"

    def test_unknown_dependency_state(self):
        alerts = _alerts(dependency=None)

        assert alerts[0].message == "GeoClue dependency geoclue is unknown"


class TestAlertsView:

    def test_systemctl_unavailable(self):
        with patch(ACTIVE_STATE, side_effect=FileNotFoundError), \
             patch(FETCH, return_value=SAMPLE_METRICS):
            view = views.alerts_view(ViewTarget())

        assert view['alerts'][0]['message'] == "Cannot determine service status"
        assert 'timestamp' in view

    def test_single_collection_per_read(self):
        with patch(ACTIVE_STATE, side_effect=_states(service='failed')) as mock_state, \
             patch(FETCH, return_value=SAMPLE_METRICS) as mock_fetch:
            view = views.alerts_view(ViewTarget())

        assert mock_fetch.call_count == 1
        assert mock_state.call_count == 2
        assert view['alerts'][0]['message'] == "Service is failed"


class TestDashboard:

    def test_dashboard_shape(self):
        with patch(ACTIVE_STATE, side_effect=_states()), \
             patch(ENABLED_STATE, return_value='enabled'), \
             patch(FETCH, return_value=SAMPLE_METRICS):
            dashboard = views.dashboard_view(ViewTarget())

        assert dashboard['status'] == {
            'service_active': True,
            'service_enabled': True,
            'dependency_active': True,
        }
        assert dashboard['metrics']['has_geoclue_data'] is True
        assert dashboard['metrics']['location']['latitude'] == 52.5
        assert dashboard['alerts'] == []

    def test_dashboard_with_endpoint_down(self):
        with patch(ACTIVE_STATE, side_effect=_states()), \
             patch(ENABLED_STATE, return_value='enabled'), \
             patch(FETCH, side_effect=EndpointError("down")):
            dashboard = views.dashboard_view(ViewTarget())

        assert dashboard['metrics']['endpoint_available'] is False
        assert 'location' not in dashboard['metrics']
        assert dashboard['alerts'][0]['message'] == "Metrics endpoint not accessible"

    def test_one_fetch_per_dashboard_read(self):
        with patch(ACTIVE_STATE, side_effect=_states()) as mock_state, \
             patch(ENABLED_STATE, return_value='enabled') as mock_enabled, \
             patch(FETCH, return_value=SAMPLE_METRICS) as mock_fetch:
            views.dashboard_view(ViewTarget())

        assert mock_fetch.call_count == 1
        assert [c.args[0] for c in mock_state.call_args_list] == [
            'geoclue-prometheus-exporter', 'geoclue',
        ]
        assert mock_enabled.call_count == 1

    def test_status_and_alerts_agree(self):
        # the service flips state between queries; one read sees one state
        with patch(ACTIVE_STATE, side_effect=['active', 'active', 'failed', 'active']), \
             patch(ENABLED_STATE, return_value='enabled'), \
             patch(FETCH, side_effect=[SAMPLE_METRICS, EndpointError("down")]):
            dashboard = views.dashboard_view(ViewTarget())

        assert dashboard['status']['service_active'] is True
        assert dashboard['metrics']['endpoint_available'] is True
        assert dashboard['alerts'] == []

    def test_enabled_state_unavailable(self):
        with patch(ACTIVE_STATE, side_effect=_states()), \
             patch(ENABLED_STATE, side_effect=FileNotFoundError), \
             patch(FETCH, return_value=SAMPLE_METRICS):
            dashboard = views.dashboard_view(ViewTarget())

        assert dashboard['status']['service_enabled'] is False
        assert dashboard['status']['service_active'] is True


class TestPerformance:

    def test_running_service(self):
        with patch('geoclue_mcp.utils.service_check.get_main_pid', return_value=4242), \
             patch('geoclue_mcp.core.diagnostics.probes.process_usage', return_value=(2.5, 1.25)), \
             patch(FETCH, return_value=SAMPLE_METRICS):
            perf = views.performance_view(ViewTarget())

        assert perf['cpu_usage'] == 2.5
        assert perf['memory_usage'] == 1.25
        assert perf['response_time'] is not None

    def test_stopped_service(self):
        with patch('geoclue_mcp.utils.service_check.get_main_pid', return_value=None), \
             patch(FETCH, side_effect=EndpointError("down")):
            perf = views.performance_view(ViewTarget())

        assert perf['cpu_usage'] is None
        assert perf['response_time'] is None

    def test_process_gone(self):
        with patch('geoclue_mcp.utils.service_check.get_main_pid', return_value=4242), \
             patch('geoclue_mcp.core.diagnostics.probes.process_usage',
                   side_effect=psutil.NoSuchProcess(4242)), \
             patch(FETCH, return_value=SAMPLE_METRICS):
            perf = views.performance_view(ViewTarget())

        assert perf['cpu_usage'] is None
        assert perf['response_time'] is not None
