"""External service clients and pipeline steps."""
