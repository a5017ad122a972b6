"""
map-validator — requirement-based validation of Lanelet2 maps.

File: src/map_validator/__init__.py

Purpose
- Package root. Runs a catalog of pluggable map checks in prerequisite order and reports
  pass/fail per requirement group.

Import boundary
- No side effects at import time (no config loading, no logging init). Submodules are
  imported by the CLI on demand.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
