"""
modbuild: a small build orchestrator for modular source trees.
"""

__version__ = "0.1.0"
