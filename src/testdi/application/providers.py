from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from testdi.domain import ConfigurationError, IMockFactory, InjectionPoint, IProvider, IScope, Key

if TYPE_CHECKING:
    from testdi.application.container import Container

T = TypeVar("T")


class MockProvider(IProvider[T]):
    """Produces a fresh mock of the declared type on every ``get()``.

    The provider imposes no scope; the scope of its binding decides how often
    ``get()`` actually runs.

    Attributes:
        cls: The type being mocked.
    """

    def __init__(self, cls: Any, mock_factory: IMockFactory) -> None:
        self.cls = cls
        self._mock_factory = mock_factory

    def get(self) -> T:
        return self._mock_factory.mock(self.cls)

    def __repr__(self) -> str:
        return f"MockProvider({getattr(self.cls, '__qualname__', self.cls)})"


class SpyProvider(IProvider[T]):
    """Produces a spy over a newly constructed real instance on every ``get()``.

    The real instance comes from ``relay_provider``, which resolves the spied
    type's constructor through the container. Its own parameters, mocks and
    spies included, are therefore injected by the same container.
    """

    def __init__(self, relay_provider: IProvider[T], mock_factory: IMockFactory) -> None:
        self.relay_provider = relay_provider
        self._mock_factory = mock_factory

    def get(self) -> T:
        instance = self.relay_provider.get()
        return self._mock_factory.spy(instance)

    def __repr__(self) -> str:
        return f"SpyProvider({self.relay_provider!r})"


class SpyImmutableInstanceProvider(IProvider[T]):
    """Produces a new spy around one captured instance on every ``get()``.

    Every spy shares the backing instance, so state changed through one spy is
    visible through the others.

    Attributes:
        instance: The instance captured when the binding was declared.
    """

    def __init__(self, instance: T, mock_factory: IMockFactory) -> None:
        self.instance = instance
        self._mock_factory = mock_factory

    def get(self) -> T:
        return self._mock_factory.spy(self.instance)

    def __repr__(self) -> str:
        return f"SpyImmutableInstanceProvider({type(self.instance).__qualname__})"


class InstanceProvider(IProvider[T]):
    """Always returns the same instance."""

    def __init__(self, instance: T) -> None:
        self.instance = instance

    def get(self) -> T:
        return self.instance

    def __repr__(self) -> str:
        return f"InstanceProvider({self.instance!r})"


class ContainerAwareProvider(IProvider[T]):
    """Base for providers that can only work once the container exists.

    ``ContainerBuilder.build()`` calls ``initialize()`` on every such provider.
    """

    _container: Optional["Container"] = None

    def initialize(self, container: "Container") -> None:
        """Attach the built container; validation of the binding happens here."""
        self._container = container

    @property
    def container(self) -> "Container":
        if self._container is None:
            raise ConfigurationError(f"{self!r} was used before the container was built")
        return self._container


class ContainerProvider(ContainerAwareProvider[T]):
    """Provider handle for a key, resolving it through the container on each ``get()``.

    Returned by ``binder.get_provider(key)`` during configuration and by
    ``container.get_provider(key)`` afterwards, and injected for ``Provider[T]``
    parameters.
    """

    def __init__(self, key: Key) -> None:
        self.key = key

    def get(self) -> T:
        return self.container.get_instance(self.key)

    def __repr__(self) -> str:
        return f"Provider({self.key})"


class ConstructorProvider(ContainerAwareProvider[T]):
    """Calls a constructor with arguments resolved from the container.

    Attributes:
        key: The key the instances are constructed for.
        target: The class or factory callable.
    """

    def __init__(self, key: Key, target: Callable[..., Any]) -> None:
        self.key = key
        self.target = target
        self.injection_point: Optional[InjectionPoint] = None

    def initialize(self, container: "Container") -> None:
        """Attach the container and compute the injection point.

        Raises:
            ConfigurationError: If the target has no injectable constructor.
        """
        super().initialize(container)
        self.injection_point = container.inspector.injection_point_for(self.target)

    def get(self) -> T:
        return self.container.construct(self.key, self.injection_point)

    def __repr__(self) -> str:
        return f"ConstructorProvider({getattr(self.target, '__qualname__', self.target)})"


class LinkedKeyProvider(ContainerAwareProvider[T]):
    """Resolves another key, used by ``bind(Interface).to(Implementation)``.

    Attributes:
        key: The bound key, tracked for circular dependency detection.
        target_key: The key resolved in its place.
    """

    def __init__(self, key: Key, target_key: Key) -> None:
        self.key = key
        self.target_key = target_key

    def get(self) -> T:
        return self.container.resolving(self.key, lambda: self.container.get_instance(self.target_key))

    def __repr__(self) -> str:
        return f"LinkedKeyProvider({self.target_key})"


class ProviderClassProvider(ContainerAwareProvider[T]):
    """Delegates to a provider class that is itself resolved through the container.

    The provider class is constructed with injection on each ``get()`` unless
    it has a scoped binding of its own.
    """

    def __init__(self, key: Key, provider_key: Key) -> None:
        self.key = key
        self.provider_key = provider_key

    def get(self) -> T:
        return self.container.resolving(self.key, lambda: self.container.get_instance(self.provider_key).get())

    def __repr__(self) -> str:
        return f"ProviderClassProvider({self.provider_key})"


class ScopedProvider(IProvider[T]):
    """Applies a scope to the provider of one key."""

    def __init__(self, key: Key, provider: IProvider[T], scope: IScope) -> None:
        self.key = key
        self.provider = provider
        self.scope = scope

    def get(self) -> T:
        return self.scope.resolve(self.key, self.provider.get)

    def __repr__(self) -> str:
        return f"ScopedProvider({self.key}, {self.provider!r}, {self.scope!r})"

