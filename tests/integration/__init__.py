"""End-to-end tests that drive ``python -m map_validator`` as a subprocess."""
