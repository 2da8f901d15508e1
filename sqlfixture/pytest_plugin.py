"""
pytest integration.

Tests whose class, module or function declares directives get their
datasets applied around the test call::

    pytest --sqlfixture-config=sqlfixture.yaml

The configuration may also be set with the ``sqlfixture_config`` ini option or
the ``SQLFIXTURE_CONFIG_FILE`` environment variable. Each test gets its own
``ConnectionManager``.
"""
import logging
from typing import Optional, Tuple

import pytest

from sqlfixture import hookspecs
from sqlfixture.assertion.filters import FilterRegistry
from sqlfixture.config.models import EnvironmentSettings, SQLFixtureConfig
from sqlfixture.config.parser import ConfigParser
from sqlfixture.dataset.loader import FlatDatasetLoader
from sqlfixture.dataset.modifiers import ModifierRegistry
from sqlfixture.db.connection import ConnectionManager
from sqlfixture.runner.context import FixtureTestContext
from sqlfixture.runner.lifecycle import FixtureLifecycle
from sqlfixture.runner.resolver import DirectiveResolver

logger = logging.getLogger(__name__)

config_key = pytest.StashKey[SQLFixtureConfig]()
registries_key = pytest.StashKey[Tuple[FilterRegistry, ModifierRegistry]]()


def pytest_addhooks(pluginmanager):
    pluginmanager.add_hookspecs(hookspecs)


def pytest_addoption(parser):
    group = parser.getgroup("sqlfixture", "database fixtures from datasets")
    group.addoption(
        "--sqlfixture-config",
        dest="sqlfixture_config",
        default=None,
        help="Path to the SQLFixture YAML configuration.",
    )
    parser.addini("sqlfixture_config", "Path to the SQLFixture YAML configuration.", default=None)


def _get_config(config: pytest.Config) -> SQLFixtureConfig:
    """Load the configuration once per session."""
    if config_key not in config.stash:
        path: Optional[str] = config.getoption("sqlfixture_config") or config.getini("sqlfixture_config") or None
        config.stash[config_key] = ConfigParser().load_config(path)
    return config.stash[config_key]


def pytest_configure(config: pytest.Config) -> None:
    configure_logging(EnvironmentSettings())


def configure_logging(env_settings: EnvironmentSettings) -> None:
    """Set the package log level from ``SQLFIXTURE_LOG_LEVEL`` or ``SQLFIXTURE_DEBUG``."""
    level = "DEBUG" if env_settings.debug else env_settings.log_level.upper()
    logging.getLogger("sqlfixture").setLevel(level)


def _get_registries(config: pytest.Config) -> Tuple[FilterRegistry, ModifierRegistry]:
    """Build the session registries, letting conftests register named entries."""
    if registries_key not in config.stash:
        filter_registry, modifier_registry = FilterRegistry(), ModifierRegistry()
        config.hook.pytest_sqlfixture_register(
            filter_registry=filter_registry, modifier_registry=modifier_registry
        )
        config.stash[registries_key] = (filter_registry, modifier_registry)
    return config.stash[registries_key]


@pytest.hookimpl(wrapper=True)
def pytest_runtest_call(item: pytest.Item):
    function = getattr(item, "function", None)
    test_class = getattr(item, "cls", None) or getattr(item, "module", None)
    resolver = DirectiveResolver()
    if function is None or test_class is None or not resolver.has_directives(test_class, function):
        return (yield)

    fixture_config = _get_config(item.config)
    settings = fixture_config.fixture_settings
    filter_registry, modifier_registry = _get_registries(item.config)
    lifecycle = FixtureLifecycle(
        resolver=resolver,
        settings=settings,
        filter_registry=filter_registry,
        modifier_registry=modifier_registry,
    )
    context = FixtureTestContext(
        test_class=test_class,
        test_method=function,
        connections=ConnectionManager(fixture_config),
        dataset_loader=FlatDatasetLoader(settings.dataset_base_path),
    )

    try:
        lifecycle.before_test(context)
        result = yield
    except BaseException as e:
        context.test_exception = e
        lifecycle.after_test(context)
        raise
    lifecycle.after_test(context)
    return result
