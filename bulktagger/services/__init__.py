"""Orchestration services used by the API and scripts."""
