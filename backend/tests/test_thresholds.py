from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from app.services.thresholds import (
    AlertCode, FillStatus, ThresholdLimits,
    derive_status, fill_percentage, severity_for_status, statuses_for_severity,
)

TODAY = date(2026, 10, 19)
LIMITS = ThresholdLimits()


def snapshot(**overrides):
    values = dict(
        capacity=10000.0,
        min_volume=1000.0,
        max_volume=9500.0,
        current_volume=5000.0,
        water_level=2.0,
        last_calibration=TODAY - timedelta(days=10),
        status="active",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def derive(**overrides):
    return derive_status(snapshot(**overrides), TODAY, LIMITS)


class TestFillLadder:
    def test_healthy_tank_is_normal_without_alerts(self):
        result = derive()
        assert result.status is FillStatus.NORMAL
        assert result.alerts == ()
        assert result.fill_level == pytest.approx(50.0)

    def test_five_percent_is_critical(self):
        result = derive(current_volume=500.0)
        assert result.status is FillStatus.CRITICAL
        assert AlertCode.CRITICAL_LOW in result.alerts
        assert "Critical fuel level" in result.messages

    def test_just_above_critical_is_low_when_min_covers_it(self):
        result = derive(current_volume=501.0, min_volume=501.0)
        assert result.status is FillStatus.LOW_LEVEL
        assert result.codes == ["low_level"]

    def test_just_above_critical_is_normal_when_min_is_lower(self):
        result = derive(current_volume=501.0, min_volume=0.0)
        assert result.status is FillStatus.NORMAL
        assert result.alerts == ()

    def test_at_max_volume_is_high_level(self):
        result = derive(current_volume=9500.0)
        assert result.status is FillStatus.HIGH_LEVEL
        assert "Maximum fuel level exceeded" in result.messages

    def test_missing_max_volume_falls_back_to_capacity(self):
        assert derive(current_volume=9600.0, max_volume=None).status is FillStatus.NORMAL
        assert derive(current_volume=10000.0, max_volume=None).status is FillStatus.HIGH_LEVEL

    def test_misconfigured_bounds_keep_low_status_but_report_both(self):
        """max below min: the low condition decides the status, both alerts are listed."""
        result = derive(current_volume=3000.0, min_volume=4000.0, max_volume=2000.0)
        assert result.status is FillStatus.LOW_LEVEL
        assert result.codes == ["low_level", "high_level"]


class TestOverrides:
    @pytest.mark.parametrize("lifecycle,expected", [
        ("maintenance", FillStatus.MAINTENANCE),
        ("error", FillStatus.ERROR),
        ("offline", FillStatus.OFFLINE),
    ])
    def test_lifecycle_status_replaces_fill_status(self, lifecycle, expected):
        result = derive(current_volume=400.0, status=lifecycle)
        assert result.status is expected
        # the fill alert is still reported
        assert AlertCode.CRITICAL_LOW in result.alerts
        assert AlertCode(lifecycle) in result.alerts

    def test_water_contamination_turns_normal_tank_to_maintenance(self):
        result = derive(water_level=10.5)
        assert result.status is FillStatus.MAINTENANCE
        assert result.codes == ["water_contamination"]

    def test_water_at_limit_is_not_contamination(self):
        assert derive(water_level=10.0).status is FillStatus.NORMAL

    def test_water_does_not_mask_critical(self):
        result = derive(current_volume=100.0, water_level=50.0)
        assert result.status is FillStatus.CRITICAL
        assert result.codes == ["critical_low", "water_contamination"]


class TestCalibrationAge:
    def test_overdue_calibration_only_adds_alert(self):
        result = derive(last_calibration=TODAY - timedelta(days=100))
        assert result.status is FillStatus.NORMAL
        assert result.messages == ["Calibration overdue"]

    def test_ninety_days_is_not_overdue(self):
        assert derive(last_calibration=TODAY - timedelta(days=90)).alerts == ()

    def test_never_calibrated(self):
        result = derive(last_calibration=None)
        assert result.codes == ["calibration_never_performed"]
        assert result.status is FillStatus.NORMAL

    def test_result_depends_only_on_inputs(self):
        tank = snapshot(current_volume=700.0, last_calibration=TODAY - timedelta(days=95))
        assert derive_status(tank, TODAY, LIMITS) == derive_status(tank, TODAY, LIMITS)


class TestDegenerateCapacity:
    def test_zero_capacity_has_no_alerts(self):
        result = derive(capacity=0.0, last_calibration=None)
        assert result.status is FillStatus.NORMAL
        assert result.alerts == ()
        assert result.fill_level is None

    def test_zero_capacity_keeps_lifecycle_override(self):
        assert derive(capacity=0.0, status="offline").status is FillStatus.OFFLINE


class TestSeverity:
    def test_fill_percentage(self):
        assert fill_percentage(2500.0, 10000.0) == pytest.approx(25.0)
        assert fill_percentage(100.0, 0) is None

    @pytest.mark.parametrize("status,severity", [
        ("critical", "critical"),
        ("error", "high"),
        ("offline", "high"),
        ("low_level", "medium"),
        ("high_level", "medium"),
        ("maintenance", "medium"),
        ("normal", "low"),
    ])
    def test_severity_table(self, status, severity):
        assert severity_for_status(status) == severity

    def test_high_filter_is_inclusive(self):
        statuses = statuses_for_severity("high")
        assert FillStatus.HIGH_LEVEL in statuses
        assert FillStatus.CRITICAL in statuses
        assert FillStatus.LOW_LEVEL not in statuses

    def test_unknown_severity_matches_nothing(self):
        assert statuses_for_severity("urgent") == []
