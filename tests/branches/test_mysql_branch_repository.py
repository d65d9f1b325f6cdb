from types import SimpleNamespace

import pytest

from shiftwork.container import build_container
from shiftwork.database.connection import DatabaseConnection

DB_CONFIG = {"host": "localhost", "port": 3306, "user": "app", "password": "secret", "database": "shiftwork"}


class FakeCursor:
    def __init__(self, row):
        self._row = row
        self.executed = []

    def execute(self, sql, params=None):
        self.executed.append((sql, params))

    def fetchone(self):
        return self._row

    def close(self):
        pass


class FakeConnection:
    def __init__(self, row):
        self.cur = FakeCursor(row)
        self.committed = False

    def cursor(self, dictionary=True, buffered=True):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        pass

    def close(self):
        pass


@pytest.fixture
def branch_row():
    return {
        "branch_id": 1,
        "branch_name": "Hanoi HQ",
        "address": "1 Trang Tien",
        "latitude": 21.0285,
        "longitude": 105.8048,
        "radius_meters": None,
    }


@pytest.fixture
def fresh_connection(monkeypatch):
    monkeypatch.setattr(DatabaseConnection, "_instance", None)


def wire_fake_db(container, monkeypatch, row):
    fake = FakeConnection(row)
    monkeypatch.setattr(container.conn, "connect", lambda: fake)
    return fake


def test_branch_without_radius_uses_configured_default(fresh_connection, monkeypatch, branch_row):
    settings = SimpleNamespace(DEFAULT_GEOFENCE_RADIUS_METERS=250)
    container = build_container(db_config=DB_CONFIG, settings=settings)
    fake = wire_fake_db(container, monkeypatch, branch_row)

    branch = container.repos.branches.get_by_id(1)

    assert branch.geofence.radius_meters == 250
    assert fake.cur.executed[0][1] == (1,)
    assert fake.committed


def test_stored_radius_wins_over_default(fresh_connection, monkeypatch, branch_row):
    container = build_container(db_config=DB_CONFIG, settings=SimpleNamespace(DEFAULT_GEOFENCE_RADIUS_METERS=250))
    wire_fake_db(container, monkeypatch, dict(branch_row, radius_meters=800))

    assert container.repos.branches.get_by_id(1).geofence.radius_meters == 800


def test_branch_without_coordinates_has_no_geofence(fresh_connection, monkeypatch, branch_row):
    container = build_container(db_config=DB_CONFIG)
    wire_fake_db(container, monkeypatch, dict(branch_row, latitude=None, longitude=None))

    assert container.repos.branches.get_by_id(1).geofence is None
