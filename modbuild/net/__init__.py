"""
Network Layer.

This package fetches dependency artifacts from remote repositories.
"""

from .downloader import Downloader, file_name_from_uri

__all__ = ["Downloader", "file_name_from_uri"]
