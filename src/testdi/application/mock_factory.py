from typing import Any, get_origin
from unittest.mock import Mock, create_autospec

from testdi.domain import IMockFactory

_MOCK_ATTRIBUTES = frozenset(dir(Mock))


def _is_state_attribute(name: str) -> bool:
    return not name.startswith("_") and name not in _MOCK_ATTRIBUTES


class Spy(Mock):
    """A ``Mock`` wrapping a real instance that also shares its state.

    Method calls are recorded and forwarded as with ``Mock(wraps=...)``.
    Reading a non-callable attribute returns the wrapped instance's value, and
    assigning a non-callable value writes it to the wrapped instance, so every
    spy over one instance sees the same state.
    """

    def __getattr__(self, name: str) -> Any:
        wrapped = self.__dict__.get("_mock_wraps")
        if wrapped is not None and _is_state_attribute(name):
            try:
                value = getattr(wrapped, name)
            except AttributeError:
                pass
            else:
                if not callable(value):
                    return value
        return super().__getattr__(name)

    def __setattr__(self, name: str, value: Any) -> None:
        wrapped = self.__dict__.get("_mock_wraps")
        if wrapped is not None and _is_state_attribute(name) and not callable(value):
            current = getattr(wrapped, name, None)
            if not callable(current):
                setattr(wrapped, name, value)
                return
        super().__setattr__(name, value)


class UnittestMockFactory(IMockFactory):
    """Manufactures mocks and spies with ``unittest.mock``.

    Mocks are autospecced instances, so calls are checked against the real
    signatures and ``isinstance`` checks pass. Spies wrap the real instance:
    calls are recorded and forwarded and return the real results, and data
    attributes are read from and written to the real instance.

    Example:
        >>> factory = UnittestMockFactory()
        >>> repository = factory.mock(UserRepository)
        >>> repository.find.return_value = None
        >>> spy = factory.spy(UserService(repository))
        >>> spy.register("bob")
        >>> spy.register.assert_called_once_with("bob")
    """

    def mock(self, cls: Any) -> Any:
        return create_autospec(get_origin(cls) or cls, instance=True)

    def spy(self, instance: Any) -> Any:
        return Spy(spec=instance, wraps=instance)
