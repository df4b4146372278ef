import inspect
import logging
from typing import Any, Callable, Iterator, List, Optional, Tuple, Type

import pytest

from testdi.application import Container, TestClassRunner, TestModule, injectable_parameters
from testdi.domain import Key, TestDISettings

logger = logging.getLogger(__name__)

CONTAINER_FIXTURE = "_testdi_container"
_SETTINGS_KEY = pytest.StashKey[TestDISettings]()
_RUNNER_KEY = pytest.StashKey[TestClassRunner]()
_PARAMETERS_ATTR = "__testdi_parameters__"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the ini options of the plugin."""
    parser.addini(
        "testdi_module_attribute",
        help="Attribute of a test class holding its TestModule subclass.",
        default="Module",
    )
    parser.addini(
        "testdi_auto_mock",
        type="bool",
        help="Bind unbound abstract types to singleton mocks just-in-time.",
        default=False,
    )
    parser.addini(
        "testdi_log_level",
        help="Level of the testdi logger.",
        default="",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Read the settings once per session and apply the log level."""
    settings = TestDISettings(
        module_attribute=config.getini("testdi_module_attribute"),
        auto_mock=config.getini("testdi_auto_mock"),
        log_level=config.getini("testdi_log_level") or None,
    )
    config.stash[_SETTINGS_KEY] = settings

    if settings.log_level:
        logging.getLogger("testdi").setLevel(settings.log_level)


def get_settings(config: pytest.Config) -> TestDISettings:
    return config.stash.get(_SETTINGS_KEY, TestDISettings())


def module_class_for(test_class: Optional[Type[Any]], settings: TestDISettings) -> Optional[Type[TestModule]]:
    """Return the ``TestModule`` subclass declared on a test class, if any."""
    if test_class is None:
        return None
    module_class = getattr(test_class, settings.module_attribute, None)
    if inspect.isclass(module_class) and issubclass(module_class, TestModule):
        return module_class
    return None


def _resolves_as_fixture(collector: Any, name: str) -> bool:
    """Whether pytest would inject ``name`` itself from a fixture visible to ``collector``."""
    return bool(collector.session._fixturemanager.getfixturedefs(name, collector))


def pytest_pycollect_makeitem(collector: Any, name: str, obj: object) -> Any:
    """Hide injected parameters of test methods from pytest fixture matching.

    Pytest treats every test function parameter as a fixture name. For test
    classes that declare a module, the annotated parameters are removed from
    the visible signature and remembered for injection. Parameters named
    after a fixture visible to the test stay with pytest, whatever their
    annotation.

    Returns:
        ``None`` to continue default collection flow.
    """
    if not inspect.isfunction(obj):
        return None
    test_class = getattr(collector, "cls", None)
    if module_class_for(test_class, get_settings(collector.config)) is None:
        return None
    if not collector.istestfunction(obj, name):
        return None

    function: Callable[..., Any] = obj
    if _PARAMETERS_ATTR in function.__dict__:
        return None

    parameters = [
        (param_name, key)
        for param_name, key in injectable_parameters(function)
        if not _resolves_as_fixture(collector, param_name)
    ]
    if not parameters:
        return None

    injected = {param_name for param_name, _ in parameters}
    signature = inspect.signature(function)
    function.__dict__[_PARAMETERS_ATTR] = parameters
    function.__signature__ = signature.replace(  # type: ignore[attr-defined]
        parameters=[param for param in signature.parameters.values() if param.name not in injected]
    )
    return None


@pytest.fixture(scope="class", autouse=True)
def _testdi_container(request: pytest.FixtureRequest) -> Iterator[Optional[Container]]:
    """Run one test-class execution around the tests of a class declaring a module.

    Bindings are configured and eager singletons realized before the first
    test of the class, so a configuration error fails the whole class.
    """
    settings = get_settings(request.config)
    module_class = module_class_for(request.cls, settings)
    if module_class is None:
        yield None
        return

    runner = TestClassRunner(module_class, settings)
    module = runner.attach(request.cls)
    container = runner.build_container(module)
    request.node.stash[_RUNNER_KEY] = runner
    try:
        yield container
    finally:
        runner.close(container)


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> Iterator[None]:
    """Call the test method with its injected parameters resolved from the container.

    A parameter that cannot be resolved fails this test only.
    """
    original_callable = pyfuncitem.obj
    parameters: Optional[List[Tuple[str, Key]]] = getattr(original_callable, _PARAMETERS_ATTR, None)
    container: Optional[Container] = pyfuncitem.funcargs.get(CONTAINER_FIXTURE)
    if not parameters or container is None:
        yield
        return

    runner: TestClassRunner = pyfuncitem.getparent(pytest.Class).stash[_RUNNER_KEY]

    def call_with_injection(**fixtures: Any) -> Any:
        kwargs = runner.resolve_parameters(container, parameters)
        return original_callable(**fixtures, **kwargs)

    pyfuncitem.obj = call_with_injection
    try:
        yield
    finally:
        pyfuncitem.obj = original_callable
