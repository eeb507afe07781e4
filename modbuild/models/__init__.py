"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the
build configuration and the statistics collected while a build runs.
"""

from .config import Artifact, BuildConfig, default_artifacts
from .stats import BuildStats, PhaseRecord, ToolInvocation

__all__ = [
    "Artifact",
    "BuildConfig",
    "BuildStats",
    "PhaseRecord",
    "ToolInvocation",
    "default_artifacts",
]
