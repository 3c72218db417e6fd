"""Core pipeline: query building, collection, planning, submission, polling and reconciliation."""
