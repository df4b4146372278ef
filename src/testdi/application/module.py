from abc import ABC, abstractmethod
from typing import Any, Optional, Type

from testdi.application.binder import ContainerBuilder, LinkedBindingBuilder, ScopedBindingBuilder
from testdi.application.providers import ContainerProvider, MockProvider, SpyImmutableInstanceProvider, SpyProvider
from testdi.application.scopes import EagerSingletonScope, SingletonScope
from testdi.domain import All, ConfigurationError, Key, Named, Qualifier, Relay, TestScope

_NO_INSTANCE = object()


class TestModule(ABC):
    """Base class declaring the bindings of a test class.

    Subclasses implement ``configure_test()`` with the ``bind_*`` helpers.
    Every helper records a declaration on the builder passed to
    ``configure()``; problems are reported when the container is built.

    Attributes:
        test_class: The test class this module is attached to, for diagnostics.

    Example:
        >>> class TestCheckout:
        ...     class Module(TestModule):
        ...         def configure_test(self):
        ...             self.bind_mock(PaymentGateway).in_scope(TestScope.SINGLETON)
        ...             self.bind_spy(Cart).in_scope(TestScope.SINGLETON)
        ...             self.bind_many(DiscountRule, SeasonalDiscount, LoyaltyDiscount)
        ...
        ...     def test_pays(self, cart: Cart, gateway: PaymentGateway):
        ...         cart.checkout()
        ...         gateway.charge.assert_called_once()
    """

    __test__ = False  # Tell pytest not to collect this class as a test

    test_class: Optional[Type[Any]] = None
    _binder: Optional[ContainerBuilder] = None

    def set_test_class(self, test_class: Type[Any]) -> None:
        """Attach the module to a test class.

        Args:
            test_class: The test class using this module.
        """
        self.test_class = test_class

    def configure(self, binder: ContainerBuilder) -> None:
        """Declare the test scopes, then the bindings of ``configure_test()``.

        Scopes are always registered first so scoped bindings can use them.
        """
        self._binder = binder
        self.bind_scopes()
        self.configure_test()

    def bind_scopes(self) -> None:
        """Register a fresh implementation for each test scope marker."""
        self.binder.bind_scope(TestScope.SINGLETON, SingletonScope())
        self.binder.bind_scope(TestScope.EAGER_SINGLETON, EagerSingletonScope())

    @abstractmethod
    def configure_test(self) -> None:
        """Declare the bindings of the test class."""

    @property
    def binder(self) -> ContainerBuilder:
        if self._binder is None:
            raise ConfigurationError(f"{type(self).__qualname__} is not being configured")
        return self._binder

    def bind(self, dependency_type: Any) -> LinkedBindingBuilder:
        """Start a general binding declaration."""
        return self.binder.bind(dependency_type)

    def bind_named(self, dependency_type: Any, name: str) -> LinkedBindingBuilder:
        """Start a binding declaration qualified with ``Named(name)``.

        Example:
            >>> self.bind_named(Clock, "fixed").to_instance(FixedClock(2024, 1, 1))
        """
        return self.binder.bind(dependency_type, Named(name))

    def bind_mock(self, dependency_type: Any, name: Optional[str] = None) -> ScopedBindingBuilder:
        """Bind a type to mocks of itself.

        You will usually want to pin the binding to ``TestScope.SINGLETON`` so
        the test and the code under test share one mock.

        Args:
            dependency_type: The type to mock.
            name: Optional name qualifying the binding. Keyword-only; ``bind_named_spy``
                takes it positionally.
        """
        return self._bind_provider(
            Key.of(dependency_type, _named(name)), MockProvider(dependency_type, self.binder.mock_factory)
        )

    def bind_named_mock(self, dependency_type: Any, name: str) -> ScopedBindingBuilder:
        return self.bind_mock(dependency_type, name)

    def bind_spy(
        self, dependency_type: Any, *, instance: Any = _NO_INSTANCE, name: Optional[str] = None
    ) -> ScopedBindingBuilder:
        """Bind a type to spies instead of real instances.

        Without ``instance``, each spy wraps a new instance built by injecting
        the type's constructor, which must be injectable. With ``instance``,
        every spy wraps that same object, so a mutable instance leaks state
        between the spies.

        Args:
            dependency_type: The concrete type to spy on.
            instance: Optional instance to wrap instead of constructing one. Keyword-only.
            name: Optional name qualifying the binding. Keyword-only; ``bind_named_spy``
                takes it positionally.
        """
        key = Key.of(dependency_type, _named(name))
        if instance is not _NO_INSTANCE:
            return self._bind_provider(key, SpyImmutableInstanceProvider(instance, self.binder.mock_factory))

        relay_key = Key.of(dependency_type, Relay())
        if not self.binder.has_binding(relay_key):
            self.binder.bind(relay_key).to_constructor(Key.of(dependency_type).raw_type)
        relay_provider: ContainerProvider = self.binder.get_provider(relay_key)
        return self._bind_provider(key, SpyProvider(relay_provider, self.binder.mock_factory))

    def bind_named_spy(self, dependency_type: Any, name: str, instance: Any = _NO_INSTANCE) -> ScopedBindingBuilder:
        return self.bind_spy(dependency_type, instance=instance, name=name)

    def bind_many_instances(self, dependency_type: Any, *instances: Any) -> None:
        """Bind several instances to one type, each under a unique qualifier.

        Only use this with immutable, stateless instances; use ``bind_many``
        for anything else. Inject them all with ``Annotated[List[T], All()]``.
        """
        self.bind_many_named_instances(dependency_type, All.DEFAULT, *instances)

    def bind_many_named_instances(self, dependency_type: Any, name: str, *instances: Any) -> None:
        """Bind several instances to one type in the group ``name``.

        Inject them all with ``Annotated[List[T], All(name)]``.
        """
        for instance in instances:
            self.binder.bind(dependency_type, self.binder.qualifiers.create(name)).to_instance(instance)

    def bind_many(self, dependency_type: Any, *implementations: Any) -> None:
        """Bind several implementations to one type, each in ``TestScope.SINGLETON``.

        Example:
            >>> self.bind_many(DiscountRule, SeasonalDiscount, LoyaltyDiscount)
        """
        self.bind_many_named(dependency_type, All.DEFAULT, *implementations)

    def bind_many_named(self, dependency_type: Any, name: str, *implementations: Any) -> None:
        """Bind several implementations to one type in the group ``name``, each in ``TestScope.SINGLETON``."""
        for implementation in implementations:
            self.binder.bind(dependency_type, self.binder.qualifiers.create(name)).to(implementation).in_scope(
                TestScope.SINGLETON
            )

    def get_provider(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> ContainerProvider:
        """Return a provider for a key, usable once the container is built."""
        return self.binder.get_provider(dependency_type, qualifier)

    def _bind_provider(self, key: Key, provider: Any) -> ScopedBindingBuilder:
        return self.binder.bind(key).to_provider(provider)


def _named(name: Optional[str]) -> Optional[Named]:
    return Named(name) if name is not None else None
