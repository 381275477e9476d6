"""hierlog command line interface."""
