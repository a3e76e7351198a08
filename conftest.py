"""Register the shared fixtures in tests/conftest.py for every test package."""

pytest_plugins = ["tests.conftest"]
