"""
Core build engine.

The `BuildOrchestrator` sequences the clean, resolve, compile and test
phases, delegating downloads to the network layer and tool calls to the
tool layer.
"""

from .orchestrator import BUILD_PHASES, COMPILE_PHASES, BuildOrchestrator, Phase

__all__ = ["BUILD_PHASES", "COMPILE_PHASES", "BuildOrchestrator", "Phase"]
