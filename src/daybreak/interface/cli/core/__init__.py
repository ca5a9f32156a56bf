"""Core CLI plumbing: entry point, theme, async bridge and error display."""
