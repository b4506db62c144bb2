"""Batch configuration engine: track slot derivation, validation and argument building."""
