import math
from datetime import timedelta

import pytest

from app.errors import ValidationError
from app.schemas.filters import AlertFilter
from app.services.access import AccessScope
from app.services.alerts import AlertQueryService

from conftest import FIXED_NOW, TODAY, fixed_clock


@pytest.fixture
def alerts(store):
    return AlertQueryService(store, fixed_clock)


@pytest.fixture
def fleet(make_tank):
    """One tank per interesting state."""
    return {
        "healthy": make_tank(name="Healthy"),
        "critical": make_tank(name="Critical", current_volume=300.0),
        "low": make_tank(name="Low", current_volume=800.0),
        "high": make_tank(name="High", current_volume=9800.0),
        "offline": make_tank(name="Offline", status="offline"),
        "overdue": make_tank(name="Overdue", last_calibration=TODAY - timedelta(days=100)),
    }


class TestListAlerts:
    def test_healthy_tanks_are_left_out(self, alerts, fleet):
        names = [a["tank_name"] for a in alerts.list_alerts(AlertFilter())["data"]]
        assert "Healthy" not in names
        assert len(names) == 5

    def test_calibration_only_alert_is_included_as_low(self, alerts, fleet):
        data = alerts.list_alerts(AlertFilter())["data"]
        overdue = next(a for a in data if a["tank_name"] == "Overdue")
        assert overdue["status"] == "normal"
        assert overdue["severity"] == "low"
        assert overdue["alerts"] == ["Calibration overdue"]

    def test_ordering_puts_normal_last(self, alerts, fleet):
        statuses = [a["status"] for a in alerts.list_alerts(AlertFilter())["data"]]
        assert statuses == ["offline", "critical", "high_level", "low_level", "normal"]

    def test_newest_measurement_first_within_status(self, alerts, make_tank):
        make_tank(name="Old", current_volume=100.0, last_measurement=FIXED_NOW - timedelta(days=2))
        make_tank(name="Never", current_volume=100.0)
        make_tank(name="New", current_volume=100.0, last_measurement=FIXED_NOW - timedelta(hours=1))

        names = [a["tank_name"] for a in alerts.list_alerts(AlertFilter())["data"]]
        assert names == ["New", "Old", "Never"]

    def test_summary_counts_by_severity(self, alerts, fleet):
        summary = alerts.list_alerts(AlertFilter())["summary"]
        assert summary == {"total": 5, "critical": 1, "high": 1, "medium": 2, "low": 1}

    def test_fill_level_in_range(self, alerts, fleet):
        for item in alerts.list_alerts(AlertFilter())["data"]:
            assert 0 <= item["fill_level"] <= 100


class TestSeverityFilter:
    def test_high_includes_critical_and_high_level(self, alerts, fleet):
        statuses = {a["status"] for a in alerts.list_alerts(AlertFilter(severity="high"))["data"]}
        assert statuses == {"critical", "high_level", "offline"}

    def test_critical_is_exact(self, alerts, fleet):
        data = alerts.list_alerts(AlertFilter(severity="critical"))["data"]
        assert [a["tank_name"] for a in data] == ["Critical"]

    def test_medium(self, alerts, fleet):
        data = alerts.list_alerts(AlertFilter(severity="medium"))["data"]
        assert [a["status"] for a in data] == ["low_level"]

    def test_unknown_severity_is_rejected(self, alerts, fleet):
        with pytest.raises(ValidationError) as exc:
            alerts.list_alerts(AlertFilter(severity="urgent"))
        assert exc.value.details["valid_values"] == ["critical", "high", "medium", "low"]


class TestScopeAndPaging:
    def test_scope_hides_other_stations(self, alerts, make_tank, other_station, operator_scope):
        make_tank(name="Mine", current_volume=100.0)
        make_tank(name="Theirs", current_volume=100.0, trading_point_id=other_station.id)

        data = alerts.list_alerts(operator_scope.restrict(AlertFilter()))["data"]
        assert [a["tank_name"] for a in data] == ["Mine"]

    def test_network_scope(self, alerts, make_tank, other_station):
        make_tank(name="Mine", current_volume=100.0)
        make_tank(name="Theirs", current_volume=100.0, trading_point_id=other_station.id)

        scope = AccessScope(user_id="net-2", roles=["network_admin"], network_id=2)
        data = alerts.list_alerts(scope.restrict(AlertFilter()))["data"]
        assert [a["tank_name"] for a in data] == ["Theirs"]

    def test_no_scope_sees_nothing(self, alerts, fleet):
        scope = AccessScope(user_id="nobody", roles=["operator"])
        assert alerts.list_alerts(scope.restrict(AlertFilter()))["data"] == []

    def test_pagination_invariant(self, alerts, fleet):
        result = alerts.list_alerts(AlertFilter(), page=2, limit=2)
        pagination = result["pagination"]
        assert pagination["total"] == 5
        assert pagination["pages"] == math.ceil(pagination["total"] / pagination["limit"])
        assert len(result["data"]) <= pagination["limit"]
        assert [a["status"] for a in result["data"]] == ["high_level", "low_level"]
        # summary still covers every match, not just the page
        assert result["summary"]["total"] == 5
