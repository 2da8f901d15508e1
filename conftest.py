"""Root pytest configuration."""

pytest_plugins = ["pytester"]
