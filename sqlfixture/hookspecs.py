"""Hooks the pytest plugin calls on conftest files and other plugins."""
import pytest


@pytest.hookspec
def pytest_sqlfixture_register(filter_registry, modifier_registry):
    """Register named column filters and dataset modifiers for the session.

    Called once per session, before the first test that declares directives.
    Names registered here may be used in ``column_filters`` and ``modifiers``
    of the directive decorators::

        def pytest_sqlfixture_register(filter_registry, modifier_registry):
            filter_registry.register("no_created", lambda: ExcludeColumnsFilter("created_at"))
    """
