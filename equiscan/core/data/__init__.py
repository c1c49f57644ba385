"""Record storage layer."""
