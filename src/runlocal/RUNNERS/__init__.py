"""Runners for container processes and concurrent task groups."""
