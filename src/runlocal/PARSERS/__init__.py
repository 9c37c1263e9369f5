"""Parsers for task definitions, operator overrides and workspace files."""
