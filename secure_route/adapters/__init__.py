"""
Boundary adapters for secure-route.
"""

from .basic import extract_basic_credentials

__all__ = [
    "extract_basic_credentials",
]
