"""
Utility Layer.

Stateless helpers for argument assembly, directory walking and formatting.
"""

from .args import ArgumentList
from .path import clean, create_dir, find_directories, find_directory_names, walk

__all__ = [
    "ArgumentList",
    "clean",
    "create_dir",
    "find_directories",
    "find_directory_names",
    "walk",
]
