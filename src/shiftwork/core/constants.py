"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_UTC_OFFSET_MINUTES = 7 * 60
DEFAULT_CHECKIN_EARLY_MINUTES = 30
DEFAULT_GEOFENCE_RADIUS_METERS = 500
MIN_GEOFENCE_RADIUS_METERS = 10
MAX_GEOFENCE_RADIUS_METERS = 10000
EARTH_RADIUS_KM = 6371.0

MINUTES_PER_DAY = 24 * 60

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

DEFAULT_OVERTIME_RATE = 1.5
PAYROLL_STANDARD_HOURS = 160
PAYROLL_EXPECTED_WORK_DAYS = 22
PAYROLL_HOURS_PER_ABSENT_DAY = 8
DEFAULT_LATE_GRACE_MINUTES = 5

NOTE_MAX_LENGTH = 500
