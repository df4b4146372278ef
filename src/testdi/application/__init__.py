"""
Application layer - Scopes, providers, the container and the test module DSL.

This layer depends only on the Domain layer.
"""

from .binder import ContainerBuilder, LinkedBindingBuilder, ScopedBindingBuilder
from .circular_detector import CircularDependencyDetector
from .container import Container
from .inspector import ConstructorInspector, injectable_parameters, key_for_annotation
from .mock_factory import UnittestMockFactory
from .module import TestModule
from .providers import (
    ConstructorProvider,
    ContainerProvider,
    InstanceProvider,
    LinkedKeyProvider,
    MockProvider,
    ProviderClassProvider,
    ScopedProvider,
    SpyImmutableInstanceProvider,
    SpyProvider,
)
from .qualifiers import UniqueQualifierFactory
from .runner import TestClassRunner
from .scopes import EagerSingletonScope, NoScope, SingletonScope

__all__ = [
    "Container",
    "ContainerBuilder",
    "LinkedBindingBuilder",
    "ScopedBindingBuilder",
    "CircularDependencyDetector",
    "ConstructorInspector",
    "injectable_parameters",
    "key_for_annotation",
    "UnittestMockFactory",
    "TestModule",
    "TestClassRunner",
    "UniqueQualifierFactory",
    # Scopes
    "NoScope",
    "SingletonScope",
    "EagerSingletonScope",
    # Providers
    "MockProvider",
    "SpyProvider",
    "SpyImmutableInstanceProvider",
    "InstanceProvider",
    "ConstructorProvider",
    "ContainerProvider",
    "LinkedKeyProvider",
    "ProviderClassProvider",
    "ScopedProvider",
]
