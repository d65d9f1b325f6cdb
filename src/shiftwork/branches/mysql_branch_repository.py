from __future__ import annotations

from typing import Optional

from ..core.constants import DEFAULT_GEOFENCE_RADIUS_METERS
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Branch, Geofence
from .repository import BranchRepository


class MySQLBranchRepository(BranchRepository):
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        default_radius_meters: int = DEFAULT_GEOFENCE_RADIUS_METERS,
    ):
        self._conn_factory = conn_factory
        self._default_radius_meters = int(default_radius_meters)

    def get_by_id(self, branch_id: int) -> Optional[Branch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT branch_id, branch_name, address, latitude, longitude, radius_meters
                FROM branches
                WHERE branch_id=%s
                """,
                (int(branch_id),),
            )
            r = fetchone(cur)
            if not r:
                return None

            geofence = None
            if r.get("latitude") is not None and r.get("longitude") is not None:
                geofence = Geofence(
                    latitude=float(r["latitude"]),
                    longitude=float(r["longitude"]),
                    radius_meters=int(r.get("radius_meters") or self._default_radius_meters),
                )
            return Branch(
                branch_id=int(r["branch_id"]),
                branch_name=r["branch_name"],
                address=r["address"],
                geofence=geofence,
            )
