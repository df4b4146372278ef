pytest_plugins = ["pytester", "testdi.infrastructure.pytest_plugin"]
