"""Unit tests for constructor and parameter inspection."""

from abc import ABC, abstractmethod
from typing import Annotated, List, Protocol

import pytest

from testdi.application.inspector import ConstructorInspector, injectable_parameters, is_abstract, key_for_annotation
from testdi.domain import All, ConfigurationError, IConstructorInspector, Key, Named, Provider


class Repository(ABC):
    @abstractmethod
    def find(self, user_id: int) -> str:
        pass


class Clock(Protocol):
    def now(self) -> float: ...


class Mailer:
    pass


class TestIsAbstract:
    """Test cases for abstract type detection."""

    def test_abc_with_abstract_methods(self):
        """Test that an ABC with abstract methods is abstract."""
        assert is_abstract(Repository)

    def test_protocol(self):
        """Test that a Protocol is abstract."""
        assert is_abstract(Clock)

    def test_concrete_class(self):
        """Test that a plain class is concrete."""
        assert not is_abstract(Mailer)

    def test_non_class(self):
        """Test that non-classes are never abstract."""
        assert not is_abstract(lambda: None)


class TestKeyForAnnotation:
    """Test cases for translating annotations into keys."""

    def test_plain_type(self):
        """Test that a plain annotation becomes an unqualified key."""
        assert key_for_annotation(Mailer) == Key.of(Mailer)

    def test_named_annotation(self):
        """Test that Annotated with Named becomes a qualified key."""
        assert key_for_annotation(Annotated[Mailer, Named("smtp")]) == Key.of(Mailer, Named("smtp"))

    def test_all_annotation(self):
        """Test that Annotated with All keeps the list type."""
        key = key_for_annotation(Annotated[List[Mailer], All("outbound")])

        assert key.dependency_type == List[Mailer]
        assert key.qualifier == All("outbound")

    def test_annotated_without_qualifier(self):
        """Test that unrelated metadata is ignored."""
        assert key_for_annotation(Annotated[Mailer, "documentation"]) == Key.of(Mailer)

    def test_more_than_one_qualifier_is_rejected(self):
        """Test that two qualifiers on one annotation raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="More than one qualifier"):
            key_for_annotation(Annotated[Mailer, Named("a"), Named("b")])

    def test_provider_annotation(self):
        """Test that Provider[T] annotations keep their type argument."""
        assert key_for_annotation(Provider[Mailer]) == Key.of(Provider[Mailer])


class TestInjectableParameters:
    """Test cases for finding the injected parameters of a test method."""

    def test_annotated_parameters_are_injected(self):
        """Test that annotated parameters are returned in order."""

        def test_method(self, mailer: Mailer, backup: Annotated[Mailer, Named("backup")]):
            pass

        assert injectable_parameters(test_method) == [
            ("mailer", Key.of(Mailer)),
            ("backup", Key.of(Mailer, Named("backup"))),
        ]

    def test_fixture_parameters_are_left_alone(self):
        """Test that unannotated parameters stay with the test runner."""

        def test_method(self, tmp_path, mailer: Mailer):
            pass

        assert injectable_parameters(test_method) == [("mailer", Key.of(Mailer))]

    def test_defaults_and_variadics_are_skipped(self):
        """Test that defaulted, *args and **kwargs parameters are not injected."""

        def test_method(self, *args, retries: int = 3, **kwargs):
            pass

        assert injectable_parameters(test_method) == []


class TestConstructorInspector:
    """Test cases for ConstructorInspector."""

    def test_implements_interface(self):
        """Test that ConstructorInspector implements IConstructorInspector."""
        assert isinstance(ConstructorInspector(), IConstructorInspector)

    def test_class_without_init(self):
        """Test that a class without __init__ has no parameters."""
        injection_point = ConstructorInspector().injection_point_for(Mailer)

        assert injection_point.target is Mailer
        assert injection_point.parameters == []

    def test_class_with_dependencies(self):
        """Test that constructor parameters become keys in order."""

        class UserService:
            def __init__(self, repository: Repository, mailer: Annotated[Mailer, Named("smtp")]):
                pass

        injection_point = ConstructorInspector().injection_point_for(UserService)

        assert injection_point.parameters == [
            ("repository", Key.of(Repository)),
            ("mailer", Key.of(Mailer, Named("smtp"))),
        ]

    def test_defaulted_parameters_are_skipped(self):
        """Test that parameters with defaults keep them."""

        class Service:
            def __init__(self, mailer: Mailer, timeout=10):
                pass

        assert ConstructorInspector().injection_point_for(Service).parameters == [("mailer", Key.of(Mailer))]

    def test_factory_function(self):
        """Test that a factory function is inspected from its first parameter."""

        def make_service(mailer: Mailer) -> object:
            return object()

        injection_point = ConstructorInspector().injection_point_for(make_service)

        assert injection_point.target is make_service
        assert injection_point.parameters == [("mailer", Key.of(Mailer))]

    def test_missing_type_hint_raises(self):
        """Test that an unannotated parameter without default raises ConfigurationError."""

        class Service:
            def __init__(self, mailer):
                pass

        with pytest.raises(ConfigurationError, match="'mailer'.*lacks a type hint"):
            ConstructorInspector().injection_point_for(Service)

    def test_abstract_class_raises(self):
        """Test that abstract classes have no injectable constructor."""
        with pytest.raises(ConfigurationError, match="is abstract"):
            ConstructorInspector().injection_point_for(Repository)

    def test_non_callable_raises(self):
        """Test that non-callables are rejected."""
        with pytest.raises(ConfigurationError, match="is not a class or callable"):
            ConstructorInspector().injection_point_for(42)

    def test_unresolvable_forward_reference_raises(self):
        """Test that a string annotation naming an unknown type raises ConfigurationError."""

        class Service:
            def __init__(self, mailer: "UnknownMailer"):  # noqa: F821
                pass

        with pytest.raises(ConfigurationError, match="Cannot inspect the constructor"):
            ConstructorInspector().injection_point_for(Service)
