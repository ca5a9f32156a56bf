"""CLI command groups registered on ``daybreak``."""
