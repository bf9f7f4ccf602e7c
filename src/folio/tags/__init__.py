"""Known-tag registry."""
