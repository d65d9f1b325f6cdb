"""Shift scheduling, GPS-validated attendance and payroll backend."""

__version__ = "0.1.0"
