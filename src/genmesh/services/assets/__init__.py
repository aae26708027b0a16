"""Output asset resolution."""
