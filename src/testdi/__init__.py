"""
testdi: Dependency injection for test classes, with auto-generated mocks and spies.

Public API exports for the testdi package.
"""

# Application exports
from testdi.application.container import Container
from testdi.application.binder import ContainerBuilder
from testdi.application.module import TestModule
from testdi.application.runner import TestClassRunner
from testdi.application.scopes import EagerSingletonScope, SingletonScope

# Domain exports
from testdi.domain.enums import TestScope
from testdi.domain.exceptions import (
    CircularDependencyError,
    ConfigurationError,
    ScopeError,
    TestDIError,
    UnresolvableError,
)
from testdi.domain.interfaces import Provider
from testdi.domain.models import All, Key, Named, TestDISettings

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    "ContainerBuilder",
    "TestModule",
    "TestClassRunner",
    # Scopes
    "TestScope",
    "SingletonScope",
    "EagerSingletonScope",
    # Keys
    "Key",
    "Named",
    "All",
    "Provider",
    "TestDISettings",
    # Exceptions
    "TestDIError",
    "ConfigurationError",
    "UnresolvableError",
    "CircularDependencyError",
    "ScopeError",
]
