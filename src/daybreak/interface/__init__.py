"""Interface domain - the daybreak command line."""
