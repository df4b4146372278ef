"""
Domain layer - Keys, qualifiers, scope markers and the contracts between collaborators.

This layer has no dependencies on other layers.
"""

from .enums import TestScope
from .exceptions import (
    CircularDependencyError,
    ConfigurationError,
    ScopeError,
    TestDIError,
    UnresolvableError,
)
from .interfaces import (
    IConstructorInspector,
    IContainer,
    IMockFactory,
    InjectionPoint,
    IProvider,
    IScope,
    Provider,
)
from .models import All, Binding, Key, Named, Qualifier, Relay, TestDISettings, UniqueQualifier

# Rebuild Pydantic models to resolve forward references
Binding.model_rebuild()

__all__ = [
    # Enums
    "TestScope",
    # Exceptions
    "TestDIError",
    "ConfigurationError",
    "UnresolvableError",
    "CircularDependencyError",
    "ScopeError",
    # Interfaces
    "IProvider",
    "Provider",
    "IScope",
    "IMockFactory",
    "IConstructorInspector",
    "IContainer",
    "InjectionPoint",
    # Models
    "Qualifier",
    "Named",
    "UniqueQualifier",
    "Relay",
    "All",
    "Key",
    "Binding",
    "TestDISettings",
]
