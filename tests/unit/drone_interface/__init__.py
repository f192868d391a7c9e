# tests/unit/drone_interface/__init__.py
"""
Unit tests for the vehicle interface.

Tests cover:
- VehicleLink: MAVSDK command dispatch, readiness polling, telemetry
"""
