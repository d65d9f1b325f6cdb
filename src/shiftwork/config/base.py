import os

# Organisation-wide fixed offset from UTC, in minutes (420 = UTC+7)
UTC_OFFSET_MINUTES = int(os.getenv("UTC_OFFSET_MINUTES", "420"))

# Check-in opens this many minutes before shift start
CHECKIN_EARLY_MINUTES = int(os.getenv("CHECKIN_EARLY_MINUTES", "30"))

DEFAULT_GEOFENCE_RADIUS_METERS = int(os.getenv("DEFAULT_GEOFENCE_RADIUS_METERS", "500"))

PAYROLL_STANDARD_HOURS = float(os.getenv("PAYROLL_STANDARD_HOURS", "160"))
PAYROLL_EXPECTED_WORK_DAYS = int(os.getenv("PAYROLL_EXPECTED_WORK_DAYS", "22"))
PAYROLL_HOURS_PER_ABSENT_DAY = float(os.getenv("PAYROLL_HOURS_PER_ABSENT_DAY", "8"))

# 0 disables lateness deductions
LATE_PENALTY_PER_CHECKIN = float(os.getenv("LATE_PENALTY_PER_CHECKIN", "0"))
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
