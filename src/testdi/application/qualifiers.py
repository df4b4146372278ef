"""Application layer - Unique qualifier synthesis for multi-bindings."""

import itertools

from testdi.domain import All, UniqueQualifier


class UniqueQualifierFactory:
    """Hands out qualifiers that never collide, tagged with a group name.

    Each ``ContainerBuilder`` owns one factory, so the sequence restarts for
    every test-class execution. Configuration is single-threaded.

    Example:
        >>> factory = UniqueQualifierFactory()
        >>> first = factory.create("plugins")
        >>> second = factory.create("plugins")
        >>> first == second
        False
        >>> first.group
        'plugins'
    """

    def __init__(self) -> None:
        self._sequence = itertools.count()

    def create(self, group_name: str = All.DEFAULT) -> UniqueQualifier:
        """Create a new qualifier belonging to ``group_name``."""
        return UniqueQualifier(group=group_name, sequence=next(self._sequence))
