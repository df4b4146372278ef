import logging
from typing import Any, Callable, Dict, Optional

from testdi.domain import IScope, Key, ScopeError

logger = logging.getLogger(__name__)


class NoScope(IScope):
    """Unscoped policy: every resolution calls the factory."""

    def enter(self) -> None:
        pass

    def exit(self) -> None:
        pass

    def resolve(self, key: Key, factory: Callable[[], Any]) -> Any:
        return factory()

    def __repr__(self) -> str:
        return "NoScope"


class SingletonScope(IScope):
    """One instance per key for the duration of a test-class execution.

    Instances are created lazily on first resolution and cached until
    ``exit()``. A new execution starts from an empty cache.

    Attributes:
        _cache: Instances of the active execution, or None outside of one.
    """

    def __init__(self) -> None:
        """Initialize the scope outside of any execution."""
        self._cache: Optional[Dict[Key, Any]] = None

    @property
    def active(self) -> bool:
        """Whether a test-class execution is in progress."""
        return self._cache is not None

    def enter(self) -> None:
        """Start a test-class execution with an empty cache."""
        logger.debug("Entering %r", self)
        self._cache = {}

    def exit(self) -> None:
        """Drop every instance cached during the execution."""
        logger.debug("Exiting %r", self)
        self._cache = None

    def resolve(self, key: Key, factory: Callable[[], Any]) -> Any:
        """Return the cached instance for ``key``, creating it on first use.

        A factory that raises leaves nothing cached and the exception
        propagates unchanged.

        Raises:
            ScopeError: If no test-class execution is in progress.

        Example:
            >>> scope = SingletonScope()
            >>> scope.enter()
            >>> first = scope.resolve(key, Service)
            >>> assert scope.resolve(key, Service) is first
        """
        if self._cache is None:
            raise ScopeError(f"Cannot resolve {key} through {self!r} outside of a test-class execution")

        if key not in self._cache:
            self._cache[key] = factory()
        return self._cache[key]

    def __repr__(self) -> str:
        return type(self).__name__


class EagerSingletonScope(SingletonScope):
    """Singleton scope whose bindings are realized as soon as the execution starts."""

    @property
    def eager(self) -> bool:
        return True
