"""Application layer - Circular dependency detection."""

from typing import List

from testdi.domain import CircularDependencyError, Key


class CircularDependencyDetector:
    """Detects circular dependencies during constructor injection.

    Keeps the stack of keys currently being constructed. When a key appears
    twice in the stack, a circular dependency is detected. Each container
    owns one detector, and a container is used by a single test-class
    execution at a time.

    Attributes:
        _stack: Keys currently being constructed, outermost first.
    """

    def __init__(self) -> None:
        """Initialize the detector with an empty stack."""
        self._stack: List[Key] = []

    def push(self, key: Key) -> None:
        """Add a key to the construction stack.

        Args:
            key: The key being constructed.

        Raises:
            CircularDependencyError: If the key is already in the stack.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push(Key.of(ServiceA))
            >>> detector.push(Key.of(ServiceB))
            >>> detector.push(Key.of(ServiceA))  # Raises CircularDependencyError
        """
        # Check if key is already in stack (circular reference)
        if key in self._stack:
            cycle_start_index = self._stack.index(key)
            cycle = self._stack[cycle_start_index:] + [key]
            raise CircularDependencyError(cycle)

        self._stack.append(key)

    def pop(self) -> None:
        """Remove the last key from the construction stack."""
        if self._stack:
            self._stack.pop()

    def clear(self) -> None:
        """Clear the entire construction stack."""
        self._stack.clear()
