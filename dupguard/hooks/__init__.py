"""Git hook entry points."""
