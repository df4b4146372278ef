"""
Infrastructure layer - External integrations.

This layer contains the integration with the pytest test runner.
It depends on both Application and Domain layers.
"""

from . import pytest_plugin

__all__ = [
    "pytest_plugin",
]
