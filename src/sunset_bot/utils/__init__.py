"""Runtime helpers - configuration."""
