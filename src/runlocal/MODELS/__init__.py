"""Data models for task descriptors, environments and run specifications."""
