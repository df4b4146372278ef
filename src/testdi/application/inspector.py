import inspect
from typing import Annotated, Any, Callable, List, Optional, Tuple, get_args, get_origin, get_type_hints

from testdi.domain import ConfigurationError, IConstructorInspector, InjectionPoint, Key, Qualifier


def is_abstract(cls: Any) -> bool:
    """Whether ``cls`` is an ABC with abstract members or a ``typing.Protocol``."""
    if not inspect.isclass(cls):
        return False
    return inspect.isabstract(cls) or bool(getattr(cls, "_is_protocol", False))


def key_for_annotation(annotation: Any) -> Key:
    """Translate a parameter annotation into a binding key.

    ``Annotated[T, Named("x")]`` carries a qualifier; any other annotation is
    an unqualified key.

    Raises:
        ConfigurationError: If more than one qualifier is attached.

    Example:
        >>> key_for_annotation(Annotated[Service, Named("primary")])
        Key(dependency_type=<class 'Service'>, qualifier=Named(name='primary'))
    """
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        qualifiers = [item for item in metadata if isinstance(item, Qualifier)]
        if len(qualifiers) > 1:
            raise ConfigurationError(f"More than one qualifier on {annotation!r}: {qualifiers}")
        return Key.of(base, qualifiers[0] if qualifiers else None)
    return Key.of(annotation)


def injectable_parameters(function: Callable[..., Any]) -> List[Tuple[str, Key]]:
    """Return the ``(name, key)`` pairs of a test function resolved by the container.

    Annotated parameters are injected. ``self``/``cls``, ``*args``/``**kwargs``,
    parameters with defaults and parameters without annotation are left to the
    test runner (pytest resolves them as fixtures).
    """
    signature = inspect.signature(function)
    type_hints = get_type_hints(function, include_extras=True)

    parameters = []
    for param_name, param in signature.parameters.items():
        if param_name in ("self", "cls"):
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if param.default is not inspect.Parameter.empty:
            continue
        if param_name not in type_hints:
            continue
        parameters.append((param_name, key_for_annotation(type_hints[param_name])))
    return parameters


class ConstructorInspector(IConstructorInspector):
    """Finds injectable constructors using signatures and type hints.

    A class is injectable through its ``__init__``; any other callable is
    treated as an explicit factory. Every parameter without a default must be
    annotated.
    """

    def injection_point_for(self, target: Callable[..., Any]) -> InjectionPoint:
        """Compute the injection point of a class or factory callable.

        Args:
            target: The class to construct, or a factory function.

        Returns:
            The callable and the ordered keys of its parameters.

        Raises:
            ConfigurationError: If ``target`` is abstract, not callable, or has a
                parameter that lacks a type hint.

        Example:
            >>> class UserService:
            ...     def __init__(self, repository: UserRepository, mailer: Annotated[Mailer, Named("smtp")]):
            ...         ...
            >>> ConstructorInspector().injection_point_for(UserService)
            InjectionPoint(UserService(repository, mailer))
        """
        if is_abstract(target):
            raise ConfigurationError(f"{_name(target)} is abstract and has no injectable constructor")
        if not callable(target):
            raise ConfigurationError(f"{target!r} is not a class or callable")

        function: Optional[Callable[..., Any]] = target
        if inspect.isclass(target):
            function = target.__init__
            if function is object.__init__:
                return InjectionPoint(target, [])

        try:
            signature = inspect.signature(function)
            type_hints = get_type_hints(function, include_extras=True)
        except (TypeError, ValueError, NameError) as e:
            raise ConfigurationError(f"Cannot inspect the constructor of {_name(target)}: {e}") from e

        parameters = []
        for index, (param_name, param) in enumerate(signature.parameters.items()):
            # Skip the instance parameter of __init__
            if inspect.isclass(target) and index == 0:
                continue

            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            # Let defaulted parameters keep their default values
            if param.default is not inspect.Parameter.empty:
                continue

            if param_name not in type_hints:
                raise ConfigurationError(
                    f"Parameter '{param_name}' of {_name(target)} lacks a type hint and has no default value"
                )

            parameters.append((param_name, key_for_annotation(type_hints[param_name])))

        return InjectionPoint(target, parameters)


def _name(target: Any) -> str:
    return getattr(target, "__qualname__", repr(target))
