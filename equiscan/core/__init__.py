"""Core components of equiscan."""
