from typing import Any, List, Optional


class TestDIError(Exception):
    """Base exception for testdi errors."""

    __test__ = False


class ConfigurationError(TestDIError):
    """Raised when a test module's bindings cannot form a container.

    This occurs when:
    - The same key is bound twice.
    - A binding uses a scope marker that was never registered.
    - A spied or constructed type has no injectable constructor.
    - A provider handle is used before the container was built.

    Configuration errors are fatal to the whole test-class execution.
    """


class UnresolvableError(TestDIError):
    """Raised when a key cannot be resolved.

    Attributes:
        key: The key (or type) that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, key: Any, reason: Optional[str] = None) -> None:
        self.key = key
        self.reason = reason
        message = f"Cannot resolve dependency for key: {key}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class CircularDependencyError(TestDIError):
    """Raised when constructor injection loops back on itself.

    Attributes:
        dependency_chain: Keys involved in the cycle, first key repeated last.
    """

    def __init__(self, dependency_chain: List[Any]) -> None:
        self.dependency_chain = dependency_chain
        message = f"Circular dependency detected: {' -> '.join(str(key) for key in dependency_chain)}"
        super().__init__(message)


class ScopeError(TestDIError):
    """Raised for invalid scope operations.

    This occurs when:
    - Resolving through a test scope outside of a test-class execution.
    - Registering two scope implementations for the same marker.
    """
