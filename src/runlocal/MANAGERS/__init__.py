"""Managers that build environments, resolve secrets and orchestrate containers."""
