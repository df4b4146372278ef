import inspect
import logging
from typing import Any, Dict, List, Optional, Union

from testdi.application.container import Container
from testdi.application.inspector import ConstructorInspector
from testdi.application.mock_factory import UnittestMockFactory
from testdi.application.providers import (
    ContainerAwareProvider,
    ContainerProvider,
    ConstructorProvider,
    InstanceProvider,
    LinkedKeyProvider,
    ProviderClassProvider,
)
from testdi.application.qualifiers import UniqueQualifierFactory
from testdi.domain import (
    All,
    Binding,
    ConfigurationError,
    IConstructorInspector,
    IMockFactory,
    IProvider,
    IScope,
    Key,
    Qualifier,
    ScopeError,
    TestScope,
)

logger = logging.getLogger(__name__)


class ScopedBindingBuilder:
    """Lets a binding declaration pin its scope."""

    def __init__(self, binding: Binding) -> None:
        self._binding = binding

    def in_scope(self, scope: Union[TestScope, IScope]) -> None:
        """Apply a scope marker (or a scope implementation) to the binding.

        Example:
            >>> binder.bind(Service).to(ServiceImpl).in_scope(TestScope.SINGLETON)
        """
        self._binding.scope = scope

    def as_eager_singleton(self) -> None:
        """Shorthand for ``in_scope(TestScope.EAGER_SINGLETON)``."""
        self.in_scope(TestScope.EAGER_SINGLETON)


class LinkedBindingBuilder(ScopedBindingBuilder):
    """Lets a binding declaration choose its qualifier and its target."""

    def annotated_with(self, qualifier: Qualifier) -> "LinkedBindingBuilder":
        """Qualify the bound key."""
        if isinstance(qualifier, All):
            raise ConfigurationError("All() requests bindings, it cannot qualify one")
        self._binding.key = self._binding.key.with_qualifier(qualifier)
        return self

    def to(self, implementation: Any) -> ScopedBindingBuilder:
        """Resolve the key through another type (or key).

        Binding a type to itself constructs it directly.
        """
        target_key = Key.of(implementation)
        if target_key == self._binding.key or (
            target_key.qualifier is None and target_key.dependency_type == self._binding.key.dependency_type
        ):
            self._binding.provider = ConstructorProvider(self._binding.key, target_key.raw_type)
        else:
            self._binding.provider = LinkedKeyProvider(self._binding.key, target_key)
        return self

    def to_instance(self, instance: Any) -> None:
        """Always resolve the key to ``instance``."""
        self._binding.provider = InstanceProvider(instance)

    def to_provider(self, provider: Any) -> ScopedBindingBuilder:
        """Resolve the key through a provider instance, a provider class, or a provider key.

        Provider classes are constructed through the container, so their
        constructors receive injected arguments.

        Raises:
            ConfigurationError: If ``provider`` is none of the accepted forms.
        """
        if isinstance(provider, Key):
            self._binding.provider = ProviderClassProvider(self._binding.key, provider)
        elif inspect.isclass(provider) and issubclass(provider, IProvider):
            self._binding.provider = ProviderClassProvider(self._binding.key, Key.of(provider))
        elif isinstance(provider, IProvider):
            self._binding.provider = provider
        else:
            raise ConfigurationError(f"{provider!r} is not a provider, a provider class or a provider key")
        return self

    def to_constructor(self, constructor: Any) -> ScopedBindingBuilder:
        """Resolve the key by calling ``constructor`` with injected arguments.

        ``constructor`` can be a class or any annotated factory callable, which
        is how types whose ``__init__`` cannot be inspected get bound.
        """
        self._binding.provider = ConstructorProvider(self._binding.key, constructor)
        return self


class ContainerBuilder:
    """Collects scopes and bindings for one test-class execution and builds the container.

    A builder, its scopes and its qualifier factory belong to a single
    execution; nothing is shared between builders.

    Attributes:
        mock_factory: The mocking library used by mock and spy bindings.
        inspector: Finds injectable constructors.
        auto_mock: Whether unbound abstract types are mocked just-in-time.
        qualifiers: Synthesizer for multi-binding qualifiers.
    """

    def __init__(
        self,
        mock_factory: Optional[IMockFactory] = None,
        inspector: Optional[IConstructorInspector] = None,
        auto_mock: bool = False,
    ) -> None:
        """Initialize an empty builder.

        Args:
            mock_factory: Mocking library, ``unittest.mock`` by default.
            inspector: Constructor inspector, type hints by default.
            auto_mock: Mock unbound abstract types on demand.
        """
        self.mock_factory: IMockFactory = mock_factory or UnittestMockFactory()
        self.inspector: IConstructorInspector = inspector or ConstructorInspector()
        self.auto_mock = auto_mock
        self.qualifiers = UniqueQualifierFactory()
        self._bindings: List[Binding] = []
        self._scopes: Dict[TestScope, IScope] = {}
        self._provider_handles: List[ContainerProvider] = []

    def bind_scope(self, marker: TestScope, scope: IScope) -> None:
        """Register the scope implementation behind a scope marker.

        Raises:
            ScopeError: If the marker already has an implementation.
        """
        if marker in self._scopes:
            raise ScopeError(f"Scope {marker} is already bound to {self._scopes[marker]!r}")
        logger.debug("Binding scope %s to %r", marker, scope)
        self._scopes[marker] = scope

    def bind(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> LinkedBindingBuilder:
        """Start a binding declaration for a type (or key).

        Example:
            >>> binder.bind(Mailer).annotated_with(Named("smtp")).to(SmtpMailer)
        """
        binding = Binding(key=Key.of(dependency_type, qualifier), source=_caller())
        self._bindings.append(binding)
        return LinkedBindingBuilder(binding)

    def get_provider(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> ContainerProvider:
        """Return a provider handle for a key, usable once the container is built."""
        handle: ContainerProvider = ContainerProvider(Key.of(dependency_type, qualifier))
        self._provider_handles.append(handle)
        return handle

    def has_binding(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> bool:
        key = Key.of(dependency_type, qualifier)
        return any(binding.key == key for binding in self._bindings)

    def install(self, module: Any) -> None:
        """Let a module declare its scopes and bindings on this builder."""
        module.configure(self)

    def build(self) -> Container:
        """Validate the declarations and create the container.

        No instance is created here; eager singletons are realized when the
        container enters a test-class execution.

        Returns:
            The container holding every binding.

        Raises:
            ConfigurationError: If a key is bound twice, a scope marker has no
                implementation, or a constructor cannot be injected.
        """
        seen: Dict[Key, Binding] = {}
        for binding in self._bindings:
            if binding.key in seen:
                raise ConfigurationError(
                    f"{binding.key} is bound more than once: at {seen[binding.key].source} and at {binding.source}"
                )
            seen[binding.key] = binding

            if isinstance(binding.scope, TestScope) and binding.scope not in self._scopes:
                raise ConfigurationError(
                    f"No scope implementation is bound for {binding.scope} (binding of {binding.key} at {binding.source})"
                )

            # Untargetted bindings construct the bound type itself
            if binding.provider is None:
                binding.provider = ConstructorProvider(binding.key, binding.key.raw_type)

        container = Container(
            bindings=list(self._bindings),
            scopes=dict(self._scopes),
            inspector=self.inspector,
            mock_factory=self.mock_factory,
            auto_mock=self.auto_mock,
        )

        for binding in self._bindings:
            if isinstance(binding.provider, ContainerAwareProvider):
                try:
                    binding.provider.initialize(container)
                except ConfigurationError as e:
                    raise ConfigurationError(f"Invalid binding of {binding.key} at {binding.source}: {e}") from e
        for handle in self._provider_handles:
            handle.initialize(container)
        container.validate()

        logger.debug("Built container with %d bindings and %d scopes", len(self._bindings), len(self._scopes))
        return container


def _caller() -> str:
    """Describe the first stack frame outside of testdi, for diagnostics."""
    frame = inspect.currentframe()
    while frame is not None:
        if not frame.f_globals.get("__name__", "").startswith("testdi."):
            return f"{frame.f_code.co_filename}:{frame.f_lineno}"
        frame = frame.f_back
    return "<unknown>"
