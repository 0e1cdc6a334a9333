"""Top-level xvfbctl commands."""
