"""Attendance Engine package.

Organized by feature modules (attendance, corrections, geofence,
reconciliation, ...) with a thin Flask JSON controller layer over
service/repository layers.
"""
