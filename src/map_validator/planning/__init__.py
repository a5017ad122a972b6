"""Prerequisite graph construction and execution ordering."""

from map_validator.planning.dependency_graph import DependencyGraph, ExclusionReason, Schedule

__all__ = ["DependencyGraph", "ExclusionReason", "Schedule"]
