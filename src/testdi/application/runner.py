import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Type

from testdi.application.binder import ContainerBuilder
from testdi.application.container import Container
from testdi.application.module import TestModule
from testdi.domain import ConfigurationError, IMockFactory, Key, TestDISettings, UnresolvableError

logger = logging.getLogger(__name__)


class TestClassRunner:
    """Contract used by a test runner to execute one test class with injection.

    For each test-class execution the runner attaches a new module instance,
    builds a new container (so scopes and caches are never shared between
    executions), resolves the parameters of every test method, and finally
    discards the test-class instances.

    Attributes:
        module_class: The ``TestModule`` subclass declaring the bindings.
        settings: Runner configuration.

    Example:
        >>> runner = TestClassRunner(TestCheckout.Module)
        >>> with runner.execution(TestCheckout) as container:
        ...     kwargs = runner.resolve_parameters(container, injectable_parameters(TestCheckout.test_pays))
        ...     TestCheckout().test_pays(**kwargs)
    """

    __test__ = False  # Tell pytest not to collect this class as a test

    def __init__(
        self,
        module_class: Type[TestModule],
        settings: Optional[TestDISettings] = None,
        mock_factory: Optional[IMockFactory] = None,
    ) -> None:
        """Initialize the runner.

        Args:
            module_class: The module declaring the bindings of the test class.
            settings: Optional settings, defaults otherwise.
            mock_factory: Optional mocking library, ``unittest.mock`` otherwise.
        """
        if not (isinstance(module_class, type) and issubclass(module_class, TestModule)):
            raise ConfigurationError(f"{module_class!r} is not a TestModule subclass")
        self.module_class = module_class
        self.settings = settings or TestDISettings()
        self._mock_factory = mock_factory

    def attach(self, test_class: Type[Any]) -> TestModule:
        """Create a module instance attached to ``test_class``."""
        module = self.module_class()
        module.set_test_class(test_class)
        return module

    def build_container(self, module: TestModule) -> Container:
        """Configure ``module`` on a new builder, build the container and start the execution.

        Eager singletons are realized here, so any error they raise aborts the
        test class before its first test method.

        Raises:
            ConfigurationError: If the bindings are invalid.
        """
        builder = ContainerBuilder(mock_factory=self._mock_factory, auto_mock=self.settings.auto_mock)
        builder.install(module)
        container = builder.build()

        logger.debug("Starting test-class execution of %s", _name(module.test_class))
        container.enter_test_class()
        return container

    def resolve_parameters(self, container: Container, parameters: Sequence[Tuple[str, Key]]) -> Dict[str, Any]:
        """Resolve the injected parameters of a test method.

        Args:
            container: The container of the current test-class execution.
            parameters: ``(name, key)`` pairs, see ``injectable_parameters``.

        Returns:
            Keyword arguments for the test method.

        Raises:
            UnresolvableError: If a parameter key cannot be resolved. Errors
                raised by user constructors propagate unchanged.
        """
        kwargs = {}
        for name, key in parameters:
            try:
                kwargs[name] = container.get_instance(key)
            except UnresolvableError:
                logger.debug("Cannot resolve parameter '%s' (%s)", name, key)
                raise
        return kwargs

    def close(self, container: Container) -> None:
        """End the test-class execution, discarding its scoped instances."""
        container.exit_test_class()

    @contextmanager
    def execution(self, test_class: Type[Any]) -> Iterator[Container]:
        """Run ``attach``, ``build_container`` and ``close`` around a block."""
        container = self.build_container(self.attach(test_class))
        try:
            yield container
        finally:
            self.close(container)


def _name(test_class: Optional[Type[Any]]) -> str:
    return getattr(test_class, "__qualname__", "<unattached>")
