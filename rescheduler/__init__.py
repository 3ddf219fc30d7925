"""Overdue task auto-rescheduling service."""
