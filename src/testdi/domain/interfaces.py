from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Generic, List, Optional, Tuple, TypeVar

if TYPE_CHECKING:
    from testdi.domain.models import Key, Qualifier

T = TypeVar("T")


class IProvider(ABC, Generic[T]):
    """Abstract interface for anything that can produce an instance on request."""

    @abstractmethod
    def get(self) -> T:
        """Provide an instance."""


# Test methods and constructors ask for ``Provider[Foo]`` to receive a provider.
Provider = IProvider


class IScope(ABC):
    """Abstract interface for a lifetime policy keyed to a test-class execution."""

    @property
    def eager(self) -> bool:
        """Whether bindings in this scope are realized as soon as the scope is entered."""
        return False

    @abstractmethod
    def enter(self) -> None:
        """Start a test-class execution."""

    @abstractmethod
    def exit(self) -> None:
        """End the current test-class execution and discard its instances."""

    @abstractmethod
    def resolve(self, key: "Key", factory: Callable[[], Any]) -> Any:
        """Return the instance for ``key``, calling ``factory`` when the scope needs a new one.

        Args:
            key: The key being resolved.
            factory: Creates an unscoped instance.
        """


class IMockFactory(ABC):
    """Abstract interface for the mocking library."""

    @abstractmethod
    def mock(self, cls: Any) -> Any:
        """Manufacture a bare mock of ``cls``."""

    @abstractmethod
    def spy(self, instance: Any) -> Any:
        """Wrap ``instance`` in a spy that forwards calls and records them."""


class InjectionPoint:
    """A callable plus the ordered keys of the parameters it needs.

    Attributes:
        target: The class or factory function to call.
        parameters: ``(name, key)`` pairs in declaration order.
    """

    def __init__(self, target: Callable[..., Any], parameters: List[Tuple[str, Any]]) -> None:
        self.target = target
        self.parameters = parameters

    def __repr__(self) -> str:
        names = ", ".join(name for name, _ in self.parameters)
        return f"InjectionPoint({getattr(self.target, '__qualname__', self.target)}({names}))"


class IConstructorInspector(ABC):
    """Abstract interface for finding the injectable constructor of a type."""

    @abstractmethod
    def injection_point_for(self, target: Callable[..., Any]) -> InjectionPoint:
        """Return the injection point of a class or factory callable.

        Raises:
            ConfigurationError: If ``target`` has no usable constructor.
        """


class IContainer(ABC):
    """Abstract interface for a built container."""

    @abstractmethod
    def get_instance(self, dependency_type: Any, qualifier: Optional["Qualifier"] = None) -> Any:
        """Resolve and return the instance bound to a key.

        Args:
            dependency_type: A type or a ``Key``.
            qualifier: Optional qualifier when ``dependency_type`` is a type.
        """

    @abstractmethod
    def get_provider(self, dependency_type: Any, qualifier: Optional["Qualifier"] = None) -> IProvider:
        """Return a provider that resolves the key on every ``get()``."""

    @abstractmethod
    def get_all(self, dependency_type: Any, group: str = "__all__") -> List[Any]:
        """Resolve every binding of ``dependency_type`` synthesized for ``group``."""

    @abstractmethod
    def enter_test_class(self) -> None:
        """Enter every scope and realize eager singletons."""

    @abstractmethod
    def exit_test_class(self) -> None:
        """Exit every scope, discarding test-class instances."""
