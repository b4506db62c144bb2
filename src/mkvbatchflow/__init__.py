"""MkvBatchFlow - batch editing of Matroska track properties."""

__version__ = "0.1.0"
