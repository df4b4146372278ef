from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union, get_origin

from pydantic import BaseModel, ConfigDict, Field, field_validator

from testdi.domain.enums import TestScope

if TYPE_CHECKING:
    from testdi.domain.interfaces import IProvider, IScope


class Qualifier(BaseModel):
    """Base value object for the extra identity attached to a bound type."""

    model_config = ConfigDict(frozen=True)


class Named(Qualifier):
    """Qualifier tagging a binding with a plain name.

    Example:
        >>> def test_uses_named(self, service: Annotated[Service, Named("primary")]):
        ...     ...
    """

    name: str = Field(..., description="The name used to distinguish the binding.")

    def __init__(self, name: str, **data: Any) -> None:
        super().__init__(name=name, **data)

    def __str__(self) -> str:
        return f"@Named({self.name!r})"


class UniqueQualifier(Qualifier):
    """Synthesized qualifier used to bind one type many times.

    Two unique qualifiers created for the same group never compare equal
    because their sequence numbers differ.

    Attributes:
        group: Name of the logical "all of these" group.
        sequence: Position handed out by the synthesizer.
    """

    group: str = Field(..., description="Group tag shared by the bindings of one multi-binding.")
    sequence: int = Field(..., ge=0, description="Number making the qualifier unique.")

    def __str__(self) -> str:
        return f"@Unique({self.group!r}, {self.sequence})"


class Relay(Qualifier):
    """Internal qualifier for the real constructor behind a spy binding."""

    def __str__(self) -> str:
        return "@Relay"


class All(Qualifier):
    """Parameter marker requesting every instance bound under one group.

    Used as a qualifier on ``List[T]`` parameters; never used to bind.

    Example:
        >>> def test_all(self, plugins: Annotated[List[Plugin], All()]):
        ...     assert len(plugins) == 3
    """

    DEFAULT: ClassVar[str] = "__all__"

    group: str = Field(default="__all__", description="Group name of the requested bindings.")

    def __init__(self, group: str = "__all__", **data: Any) -> None:
        super().__init__(group=group, **data)

    def __str__(self) -> str:
        return f"@All({self.group!r})"


class Key(BaseModel):
    """Value object identifying a binding: a type plus an optional qualifier.

    Attributes:
        dependency_type: The declared type, a class or a parameterized alias.
        qualifier: Optional qualifier distinguishing bindings of the same type.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    dependency_type: Any = Field(..., description="The declared type of the binding.")
    qualifier: Optional[Qualifier] = Field(default=None, description="Extra identity of the binding.")

    @field_validator("dependency_type")
    @classmethod
    def _check_dependency_type(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("dependency_type cannot be None")
        return value

    @classmethod
    def of(cls, dependency_type: Any, qualifier: Optional[Qualifier] = None) -> "Key":
        """Build a key, passing existing keys through untouched."""
        if isinstance(dependency_type, Key):
            if qualifier is None:
                return dependency_type
            return cls(dependency_type=dependency_type.dependency_type, qualifier=qualifier)
        return cls(dependency_type=dependency_type, qualifier=qualifier)

    @property
    def raw_type(self) -> Any:
        """The class behind the declared type, without type arguments."""
        return get_origin(self.dependency_type) or self.dependency_type

    def with_qualifier(self, qualifier: Optional[Qualifier]) -> "Key":
        return Key(dependency_type=self.dependency_type, qualifier=qualifier)

    def __str__(self) -> str:
        type_name = getattr(self.dependency_type, "__qualname__", None) or repr(self.dependency_type)
        if self.qualifier is None:
            return type_name
        return f"{type_name} {self.qualifier}"


class Binding(BaseModel):
    """Records one binding declaration.

    Attributes:
        key: The key being bound.
        provider: The provider producing instances for the key, set by the
            linked binding builder.
        scope: Scope marker, scope instance, or None for unscoped.
        source: Where the binding was declared, used in diagnostics.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: Key = Field(..., description="The key being bound.")
    provider: Optional["IProvider"] = Field(default=None, description="Provider producing instances.")
    scope: Optional[Union[TestScope, "IScope"]] = Field(
        default=None,
        description="Scope marker or scope implementation applied to the provider.",
    )
    source: str = Field(default="<unknown>", description="Declaration site for diagnostics.")


class TestDISettings(BaseModel):
    """Runner configuration.

    Attributes:
        module_attribute: Attribute holding the TestModule subclass on a test class.
        auto_mock: Bind unbound abstract types to singleton mocks on demand.
        log_level: Level applied to the ``testdi`` logger, if set.
    """

    __test__ = False

    model_config = ConfigDict(frozen=True)

    module_attribute: str = Field(default="Module", min_length=1, description="Nested module attribute name.")
    auto_mock: bool = Field(default=False, description="Mock unbound abstract types just-in-time.")
    log_level: Optional[str] = Field(default=None, description="Log level for the testdi logger.")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        value = value.upper()
        if value not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {value}")
        return value
