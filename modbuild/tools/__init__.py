"""
Tool Layer.

This package resolves tool names to in-process providers or external
executables and runs them, failing on nonzero exit codes.
"""

from .registry import ExternalTool, InProcessTool, Tool, ToolRegistry
from .runner import ToolRunner

__all__ = ["ExternalTool", "InProcessTool", "Tool", "ToolRegistry", "ToolRunner"]
