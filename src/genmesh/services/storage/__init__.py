"""Object storage relay."""
