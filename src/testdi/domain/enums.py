from enum import Enum


class TestScope(str, Enum):
    """Scope markers for bindings whose lifetime is one test-class execution.

    Attributes:
        SINGLETON: One instance per test-class execution, created on first resolution.
        EAGER_SINGLETON: One instance per test-class execution, created when the
            execution starts, before any test method runs.
    """

    __test__ = False  # Tell pytest not to collect this class as a test

    SINGLETON = "singleton"
    EAGER_SINGLETON = "eager_singleton"

    def __str__(self) -> str:
        return self.value
