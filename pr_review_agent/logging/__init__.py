"""Operator console output and audit log persistence."""
