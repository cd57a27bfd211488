import pytest

from app.errors import AccessDeniedError, NotFoundError, ValidationError
from app.schemas.filters import StockFilter
from app.schemas.tank import TankCreate, TankUpdate
from app.services.access import AccessScope
from app.services.snapshots import SnapshotService

from conftest import fixed_clock


@pytest.fixture
def snapshots(store):
    return SnapshotService(store, fixed_clock)


@pytest.fixture
def manager_scope(station):
    return AccessScope(user_id="mgr-1", roles=["manager"], trading_point_ids=[station.id])


class TestListSnapshots:
    def test_summary(self, snapshots, make_tank):
        make_tank(current_volume=5000.0)
        make_tank(current_volume=300.0)
        make_tank(current_volume=800.0, status="maintenance")

        result = snapshots.list_snapshots(StockFilter(), page=1, limit=50)
        summary = result["summary"]

        assert summary["total_tanks"] == 3
        assert summary["normal_tanks"] == 1
        assert summary["critical_tanks"] == 1
        assert summary["active_tanks"] == 2
        assert summary["maintenance_tanks"] == 1
        assert summary["total_volume"] == 6100.0
        assert summary["total_capacity"] == 30000.0
        assert summary["average_fill_level"] == pytest.approx(20.33, abs=0.01)

    def test_derived_status_filter_pages_after_filtering(self, snapshots, make_tank):
        for _ in range(3):
            make_tank(current_volume=200.0)
        make_tank(current_volume=5000.0)

        result = snapshots.list_snapshots(StockFilter(status="critical"), page=1, limit=2)

        assert len(result["data"]) == 2
        assert result["pagination"]["total"] == 3
        assert result["pagination"]["pages"] == 2
        assert all(s["status"] == "critical" for s in result["data"])

    def test_has_alerts(self, snapshots, make_tank):
        make_tank()
        make_tank(last_calibration=None)

        result = snapshots.list_snapshots(StockFilter(has_alerts=True), page=1, limit=50)

        assert len(result["data"]) == 1
        assert result["data"][0]["alert_codes"] == ["calibration_never_performed"]

    def test_lifecycle_filter_and_scope(self, snapshots, make_tank, other_station, operator_scope):
        make_tank(status="offline")
        make_tank()
        make_tank(status="offline", trading_point_id=other_station.id)

        filters = operator_scope.restrict(StockFilter(lifecycle_status="offline"))
        result = snapshots.list_snapshots(filters, page=1, limit=50)

        assert len(result["data"]) == 1
        assert result["data"][0]["status"] == "offline"

    def test_invalid_filters(self, snapshots):
        with pytest.raises(ValidationError):
            snapshots.list_snapshots(StockFilter(status="empty"), page=1, limit=50)
        with pytest.raises(ValidationError):
            snapshots.list_snapshots(StockFilter(lifecycle_status="retired"), page=1, limit=50)

    def test_get_snapshot(self, snapshots, make_tank, operator_scope, other_station):
        tank = make_tank(name="Main")
        assert snapshots.get_snapshot(tank.id, operator_scope)["name"] == "Main"
        with pytest.raises(NotFoundError):
            snapshots.get_snapshot(999, operator_scope)

        theirs = make_tank(trading_point_id=other_station.id)
        with pytest.raises(AccessDeniedError):
            snapshots.get_snapshot(theirs.id, operator_scope)


class TestProvision:
    def test_defaults(self, snapshots, station, diesel, manager_scope):
        view = snapshots.provision(
            TankCreate(trading_point_id=station.id, fuel_type_id=diesel.id, name="New tank", code="t-9",
                       capacity=20000.0),
            manager_scope,
        )

        assert view["code"] == "T-9"
        assert view["current_volume"] == 0.0
        assert view["min_volume"] == 0.0
        assert view["max_volume"] == 20000.0
        assert view["lifecycle_status"] == "active"
        assert view["fuel_type_name"] == "Diesel"

    def test_duplicate_code(self, snapshots, station, make_tank, manager_scope):
        make_tank(code="T-1")
        with pytest.raises(ValidationError) as exc:
            snapshots.provision(
                TankCreate(trading_point_id=station.id, name="Dup", code="t-1", capacity=1000.0), manager_scope
            )
        assert exc.value.field == "code"

    def test_bounds_checked(self, snapshots, station, manager_scope):
        with pytest.raises(ValidationError) as exc:
            snapshots.provision(
                TankCreate(trading_point_id=station.id, name="X", code="X", capacity=1000.0, max_volume=1500.0),
                manager_scope,
            )
        assert exc.value.field == "max_volume"

    def test_unknown_trading_point(self, snapshots, manager_scope):
        with pytest.raises(NotFoundError):
            snapshots.provision(TankCreate(trading_point_id=42, name="X", code="X", capacity=1000.0), manager_scope)

    def test_foreign_trading_point(self, snapshots, other_station, manager_scope):
        with pytest.raises(AccessDeniedError):
            snapshots.provision(
                TankCreate(trading_point_id=other_station.id, name="X", code="X", capacity=1000.0), manager_scope
            )


class TestUpdateSettings:
    def test_updates_bounds_and_status(self, snapshots, make_tank, manager_scope):
        tank = make_tank()

        view = snapshots.update_settings(
            tank.id, TankUpdate(min_volume=2000.0, status="maintenance", name=" Renamed "), manager_scope
        )

        assert view["min_volume"] == 2000.0
        assert view["max_volume"] == 9500.0
        assert view["name"] == "Renamed"
        assert view["lifecycle_status"] == "maintenance"
        assert view["status"] == "maintenance"

    def test_min_above_max_rejected(self, db, snapshots, make_tank, manager_scope):
        tank = make_tank()
        with pytest.raises(ValidationError):
            snapshots.update_settings(tank.id, TankUpdate(min_volume=9600.0), manager_scope)
        db.refresh(tank)
        assert tank.min_volume == 1000.0

    def test_invalid_status(self, snapshots, make_tank, manager_scope):
        tank = make_tank()
        with pytest.raises(ValidationError) as exc:
            snapshots.update_settings(tank.id, TankUpdate(status="retired"), manager_scope)
        assert exc.value.details["valid_values"] == ["active", "maintenance", "error", "offline"]
