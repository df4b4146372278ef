import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, get_args, get_origin

from testdi.application.circular_detector import CircularDependencyDetector
from testdi.application.inspector import is_abstract
from testdi.application.providers import (
    ContainerProvider,
    ConstructorProvider,
    LinkedKeyProvider,
    MockProvider,
    ProviderClassProvider,
    ScopedProvider,
)
from testdi.application.scopes import NoScope
from testdi.domain import (
    All,
    Binding,
    ConfigurationError,
    IConstructorInspector,
    IContainer,
    IMockFactory,
    InjectionPoint,
    IProvider,
    IScope,
    Key,
    Qualifier,
    ScopeError,
    TestScope,
    UniqueQualifier,
    UnresolvableError,
)

logger = logging.getLogger(__name__)


class Container(IContainer):
    """Container resolving keys for one test-class execution.

    Created by ``ContainerBuilder.build()``. Holds the bindings, the scope
    implementations they use, and the index of multi-binding groups.

    Attributes:
        inspector: Finds injectable constructors for constructor bindings and
            just-in-time bindings.
        mock_factory: Mocking library used for just-in-time mocks.
        auto_mock: Whether unbound abstract types are mocked just-in-time.
        _bindings: Bindings by key, in declaration order.
        _providers: Scoped provider of each binding.
        _scopes: Scope implementations by marker.
        _groups: Keys of the synthesized bindings by (type, group name).
        _circular_detector: Component detecting circular constructor dependencies.
    """

    def __init__(
        self,
        bindings: List[Binding],
        scopes: Dict[TestScope, IScope],
        inspector: IConstructorInspector,
        mock_factory: IMockFactory,
        auto_mock: bool = False,
    ) -> None:
        self.inspector = inspector
        self.mock_factory = mock_factory
        self.auto_mock = auto_mock
        self._scopes = scopes
        self._bindings: Dict[Key, Binding] = {}
        self._providers: Dict[Key, IProvider] = {}
        self._groups: Dict[Tuple[Any, str], List[Key]] = {}
        self._circular_detector = CircularDependencyDetector()

        for binding in bindings:
            self._add_binding(binding)

    def _add_binding(self, binding: Binding) -> None:
        """Index a binding and wrap its provider in its scope."""
        key = binding.key
        self._bindings[key] = binding
        self._providers[key] = ScopedProvider(key, binding.provider, self._scope_for(binding))

        if isinstance(key.qualifier, UniqueQualifier):
            self._groups.setdefault((key.dependency_type, key.qualifier.group), []).append(key)

        logger.debug("Bound %s to %r in %s", key, binding.provider, binding.scope or "no scope")

    def _scope_for(self, binding: Binding) -> IScope:
        if binding.scope is None:
            return NoScope()
        if isinstance(binding.scope, TestScope):
            if binding.scope not in self._scopes:
                raise ConfigurationError(f"No scope implementation is bound for {binding.scope}")
            return self._scopes[binding.scope]
        return binding.scope

    @property
    def scopes(self) -> List[IScope]:
        """Every scope implementation in use, registered or attached to a binding directly."""
        found: List[IScope] = list(self._scopes.values())
        for binding in self._bindings.values():
            if isinstance(binding.scope, IScope) and binding.scope not in found:
                found.append(binding.scope)
        return found

    def enter_test_class(self) -> None:
        """Enter every scope, then realize the bindings of eager scopes.

        Eager bindings are realized in declaration order. An exception raised by
        one of them propagates unchanged: the test-class execution is over
        before any test method ran.
        """
        for scope in self.scopes:
            scope.enter()

        for key, binding in list(self._bindings.items()):
            scope = self._scope_for(binding)
            if not scope.eager:
                continue
            logger.debug("Realizing eager singleton %s", key)
            try:
                self._providers[key].get()
            except Exception:
                logger.exception("Eager singleton %s (bound at %s) failed to initialize", key, binding.source)
                raise

    def exit_test_class(self) -> None:
        """Exit every scope, discarding the instances of the execution."""
        for scope in self.scopes:
            scope.exit()
        self._circular_detector.clear()

    def get_instance(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> Any:
        """Resolve the instance bound to a key.

        ``Provider[T]`` keys resolve to a provider of ``T``, and ``List[T]``
        keys qualified with ``All(group)`` resolve to every instance of the
        group. Unbound keys fall back to just-in-time bindings.

        Args:
            dependency_type: A type or a ``Key``.
            qualifier: Optional qualifier when ``dependency_type`` is a type.

        Returns:
            The resolved instance.

        Raises:
            UnresolvableError: If the key has no binding and no just-in-time binding.
            CircularDependencyError: If constructor, linked or provider-class bindings loop.

        Example:
            >>> mailer = container.get_instance(Mailer, Named("smtp"))
        """
        key = Key.of(dependency_type, qualifier)

        if isinstance(key.qualifier, All):
            return self.get_all(_element_type(key.dependency_type), key.qualifier.group)

        if key.raw_type is IProvider and key not in self._providers:
            provided_type = get_args(key.dependency_type)
            if not provided_type:
                raise UnresolvableError(key, "Provider must be parameterized with the provided type")
            return self.get_provider(provided_type[0], key.qualifier)

        provider = self._providers.get(key)
        if provider is None:
            provider = self._bind_just_in_time(key)
        return provider.get()

    def get_provider(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> IProvider:
        """Return a provider resolving the key, through its scope, on each ``get()``."""
        provider: ContainerProvider = ContainerProvider(Key.of(dependency_type, qualifier))
        provider.initialize(self)
        return provider

    def get_all(self, dependency_type: Any, group: str = All.DEFAULT) -> List[Any]:
        """Resolve every synthesized binding of a type in one group.

        Example:
            >>> plugins = container.get_all(Plugin)
        """
        return [self._providers[key].get() for key in self.keys_in_group(dependency_type, group)]

    def keys_in_group(self, dependency_type: Any, group: str = All.DEFAULT) -> List[Key]:
        return list(self._groups.get((dependency_type, group), []))

    def get_binding(self, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> Optional[Binding]:
        return self._bindings.get(Key.of(dependency_type, qualifier))

    def resolving(self, key: Key, resolve: Callable[[], Any]) -> Any:
        """Run ``resolve`` with ``key`` on the stack of keys being resolved.

        Raises:
            CircularDependencyError: If ``key`` is already being resolved.
        """
        self._circular_detector.push(key)
        try:
            return resolve()
        finally:
            self._circular_detector.pop()

    def construct(self, key: Key, injection_point: InjectionPoint) -> Any:
        """Call an injection point with arguments resolved from this container.

        Exceptions raised by the constructor itself propagate unchanged.
        """

        def call() -> Any:
            kwargs = {name: self.get_instance(param_key) for name, param_key in injection_point.parameters}
            return injection_point.target(**kwargs)

        return self.resolving(key, call)

    def validate(self) -> None:
        """Check that the keys needed by constructor, linked and provider-class bindings can be resolved.

        Dependencies of unbound classes are checked as well, since they are
        bound just-in-time.

        Raises:
            ConfigurationError: For the first binding depending on an unresolvable key.
        """
        for key, binding in self._bindings.items():
            needed: List[Tuple[str, Key]] = []
            if isinstance(binding.provider, ConstructorProvider) and binding.provider.injection_point:
                needed = binding.provider.injection_point.parameters
            elif isinstance(binding.provider, LinkedKeyProvider):
                needed = [("target", binding.provider.target_key)]
            elif isinstance(binding.provider, ProviderClassProvider):
                needed = [("provider", binding.provider.provider_key)]

            for name, dependency_key in needed:
                reason = self._why_unresolvable(dependency_key, set())
                if reason:
                    raise ConfigurationError(
                        f"Binding of {key} at {binding.source} needs {dependency_key} ('{name}'): {reason}"
                    )

    def _why_unresolvable(self, key: Key, visited: Set[Key]) -> Optional[str]:
        if key in self._bindings or isinstance(key.qualifier, All) or key.raw_type is IProvider:
            return None
        if key.qualifier is not None:
            return "no binding exists for this qualified key"
        if is_abstract(key.raw_type):
            return None if self.auto_mock else "abstract types need an explicit binding"
        if key in visited:
            return None
        visited.add(key)
        try:
            injection_point = self.inspector.injection_point_for(key.raw_type)
        except ConfigurationError as e:
            return str(e)
        for name, dependency_key in injection_point.parameters:
            reason = self._why_unresolvable(dependency_key, visited)
            if reason:
                return f"{dependency_key} ('{name}') is unresolvable: {reason}"
        return None

    def _bind_just_in_time(self, key: Key) -> IProvider:
        """Create the implicit binding of an unbound key.

        Concrete classes are constructed unscoped; abstract types are mocked in
        ``TestScope.SINGLETON`` when ``auto_mock`` is enabled.
        """
        if key.qualifier is not None:
            raise UnresolvableError(key, "No binding exists for this qualified key")

        raw_type = key.raw_type
        if not inspect.isclass(raw_type):
            raise UnresolvableError(key, "Only classes can be bound just-in-time")

        if is_abstract(raw_type):
            if not self.auto_mock:
                raise UnresolvableError(key, "Abstract types need an explicit binding")
            if TestScope.SINGLETON not in self._scopes:
                raise ScopeError(f"Cannot mock {key} just-in-time: {TestScope.SINGLETON} scope is not bound")
            binding = Binding(
                key=key,
                provider=MockProvider(key.dependency_type, self.mock_factory),
                scope=TestScope.SINGLETON,
                source="just-in-time",
            )
        else:
            provider: ConstructorProvider = ConstructorProvider(key, raw_type)
            try:
                provider.initialize(self)
            except ConfigurationError as e:
                raise UnresolvableError(key, str(e)) from e
            binding = Binding(key=key, provider=provider, source="just-in-time")

        logger.debug("Created just-in-time binding for %s", key)
        self._add_binding(binding)
        return self._providers[key]


def _element_type(dependency_type: Any) -> Any:
    """Element type of ``List[T]``, or the type itself."""
    if get_origin(dependency_type) in (list, List):
        return get_args(dependency_type)[0]
    return dependency_type
