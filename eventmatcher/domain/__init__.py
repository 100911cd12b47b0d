"""Availability validation and aggregation built on the recurrence engine."""
