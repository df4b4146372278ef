"""
pytest integration module.

Resolves the annotated parameters of test methods from the container of the
test class's ``TestModule``. Enable it from a ``conftest.py``::

    pytest_plugins = ["testdi.infrastructure.pytest_plugin"]
"""

from .plugin import (
    CONTAINER_FIXTURE,
    _testdi_container,
    get_settings,
    module_class_for,
    pytest_addoption,
    pytest_configure,
    pytest_pycollect_makeitem,
    pytest_pyfunc_call,
)

__all__ = [
    "CONTAINER_FIXTURE",
    "get_settings",
    "module_class_for",
    "pytest_addoption",
    "pytest_configure",
    "pytest_pycollect_makeitem",
    "pytest_pyfunc_call",
    "_testdi_container",
]
