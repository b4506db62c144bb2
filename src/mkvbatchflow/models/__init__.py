"""Data models for scanned media and editable track configuration."""
