"""Unit tests for TestClassRunner."""

from abc import ABC, abstractmethod
from typing import Annotated
from unittest.mock import Mock

import pytest

from testdi.application.inspector import injectable_parameters
from testdi.application.module import TestModule
from testdi.application.runner import TestClassRunner
from testdi.domain import ConfigurationError, IMockFactory, Key, Named, ScopeError, TestDISettings, TestScope, UnresolvableError


class Repository(ABC):
    @abstractmethod
    def find(self, user_id: int) -> str:
        pass


class Service:
    pass


class ServiceModule(TestModule):
    def configure_test(self):
        self.bind(Service).in_scope(TestScope.SINGLETON)
        self.bind_named(Service, "eager").as_eager_singleton()


class CheckoutTests:
    def test_method(self, service: Service, eager: Annotated[Service, Named("eager")], tmp_path):
        pass


class TestRunnerConstruction:
    """Test cases for creating a runner."""

    def test_rejects_non_module(self):
        """Test that the module class must subclass TestModule."""
        with pytest.raises(ConfigurationError, match="is not a TestModule subclass"):
            TestClassRunner(Service)

    def test_rejects_module_instance(self):
        """Test that a module instance is not accepted in place of its class."""
        with pytest.raises(ConfigurationError):
            TestClassRunner(ServiceModule())

    def test_default_settings(self):
        """Test that a runner uses default settings when none are given."""
        assert TestClassRunner(ServiceModule).settings == TestDISettings()

    def test_is_not_collected(self):
        """Test that pytest does not collect the runner class."""
        assert TestClassRunner.__test__ is False


class TestRunnerContract:
    """Test cases for attach, build_container, resolve_parameters and close."""

    def test_attach_creates_attached_module(self):
        """Test that attach returns a new module attached to the test class."""
        runner = TestClassRunner(ServiceModule)

        first = runner.attach(CheckoutTests)
        second = runner.attach(CheckoutTests)

        assert isinstance(first, ServiceModule)
        assert first.test_class is CheckoutTests
        assert first is not second

    def test_build_container_realizes_eager_singletons(self):
        """Test that build_container starts the execution."""
        created = []

        class Eager:
            def __init__(self):
                created.append(self)

        class EagerModule(TestModule):
            def configure_test(self):
                self.bind(Eager).as_eager_singleton()

        runner = TestClassRunner(EagerModule)
        runner.build_container(runner.attach(CheckoutTests))

        assert len(created) == 1

    def test_build_container_reports_configuration_errors(self):
        """Test that invalid bindings fail the build."""

        class BrokenModule(TestModule):
            def configure_test(self):
                self.bind(Service)
                self.bind(Service)

        runner = TestClassRunner(BrokenModule)

        with pytest.raises(ConfigurationError, match="bound more than once"):
            runner.build_container(runner.attach(CheckoutTests))

    def test_containers_are_not_shared(self):
        """Test that each test-class execution gets its own singletons."""
        runner = TestClassRunner(ServiceModule)

        first = runner.build_container(runner.attach(CheckoutTests))
        second = runner.build_container(runner.attach(CheckoutTests))

        assert first.get_instance(Service) is not second.get_instance(Service)

    def test_resolve_parameters(self):
        """Test that annotated test parameters resolve from the container."""
        runner = TestClassRunner(ServiceModule)
        container = runner.build_container(runner.attach(CheckoutTests))

        kwargs = runner.resolve_parameters(container, injectable_parameters(CheckoutTests.test_method))

        assert set(kwargs) == {"service", "eager"}
        assert kwargs["service"] is container.get_instance(Service)
        assert kwargs["eager"] is container.get_instance(Service, Named("eager"))
        assert kwargs["service"] is not kwargs["eager"]

    def test_resolve_parameters_unresolvable(self):
        """Test that unresolvable parameters raise UnresolvableError."""
        runner = TestClassRunner(ServiceModule)
        container = runner.build_container(runner.attach(CheckoutTests))

        with pytest.raises(UnresolvableError, match="Repository"):
            runner.resolve_parameters(container, [("repository", Key.of(Repository))])

    def test_close_ends_the_execution(self):
        """Test that close discards the scoped instances."""
        runner = TestClassRunner(ServiceModule)
        container = runner.build_container(runner.attach(CheckoutTests))

        runner.close(container)

        with pytest.raises(ScopeError):
            container.get_instance(Service)

    def test_execution_context_manager(self):
        """Test that execution wraps a whole test-class execution."""
        runner = TestClassRunner(ServiceModule)

        with runner.execution(CheckoutTests) as container:
            service = container.get_instance(Service)
            assert container.get_instance(Service) is service

        with pytest.raises(ScopeError):
            container.get_instance(Service)

    def test_auto_mock_setting(self):
        """Test that the auto_mock setting reaches the container."""
        runner = TestClassRunner(ServiceModule, TestDISettings(auto_mock=True))

        with runner.execution(CheckoutTests) as container:
            assert isinstance(container.get_instance(Repository), Repository)

    def test_custom_mock_factory(self):
        """Test that a custom mocking library is used for mock bindings."""
        mock_factory = Mock(spec=IMockFactory)

        class MockModule(TestModule):
            def configure_test(self):
                self.bind_mock(Repository)

        runner = TestClassRunner(MockModule, mock_factory=mock_factory)

        with runner.execution(CheckoutTests) as container:
            assert container.get_instance(Repository) is mock_factory.mock.return_value
