"""Dataset modifiers applied to expected datasets before comparison."""

from collections.abc import Hashable
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol

import pandas as pd

from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import ConfigurationError


class DatasetModifier(Protocol):
    """Pure transformation of a dataset."""

    def modify(self, dataset: Dataset) -> Dataset:
        ...


class IdentityModifier:
    """Returns the dataset unchanged."""

    def modify(self, dataset: Dataset) -> Dataset:
        return dataset


IDENTITY = IdentityModifier()


class ModifierChain:
    """Applies modifiers in the order they were added."""

    def __init__(self, modifiers: Iterable[DatasetModifier] = ()):
        self._modifiers: List[DatasetModifier] = list(modifiers)

    def add(self, modifier: DatasetModifier) -> None:
        self._modifiers.append(modifier)

    def modify(self, dataset: Dataset) -> Dataset:
        for modifier in self._modifiers:
            dataset = modifier.modify(dataset)
            if dataset is None:
                raise ConfigurationError(f"Dataset modifier {type(modifier).__name__} returned no dataset")
        return dataset

    def __len__(self) -> int:
        return len(self._modifiers)


class ReplacementModifier:
    """Replaces placeholder cell values.

    ``objects`` replaces whole cells equal to a key; ``substrings`` rewrites
    parts of string cells. The default maps ``"[null]"`` to None.
    """

    def __init__(self, objects: Optional[Mapping[Any, Any]] = None,
                 substrings: Optional[Mapping[str, str]] = None):
        self.objects: Dict[Any, Any] = {"[null]": None} if objects is None else dict(objects)
        self.substrings: Dict[str, str] = dict(substrings or {})

    def modify(self, dataset: Dataset) -> Dataset:
        return Dataset(self._replace_table(table) for table in dataset)

    def _replace_table(self, table: Table) -> Table:
        frame = table.rows
        names = list(frame.columns)
        replaced = [
            [self._replace_value(value) for value in row]
            for row in frame.itertuples(index=False, name=None)
        ]
        return Table(table.metadata, pd.DataFrame(replaced, columns=names, dtype=object))

    def _replace_value(self, value: Any) -> Any:
        if isinstance(value, Hashable) and value in self.objects:
            return self.objects[value]
        if isinstance(value, str):
            for old, new in self.substrings.items():
                value = value.replace(old, new)
        return value


class ModifierRegistry:
    """Maps symbolic modifier names to factories."""

    def __init__(self) -> None:
        self._factories: Dict[str, Callable[[], DatasetModifier]] = {
            "identity": lambda: IDENTITY,
            "replacement": ReplacementModifier,
        }

    def register(self, name: str, factory: Callable[[], DatasetModifier]) -> None:
        self._factories[name] = factory

    def create(self, name: str) -> DatasetModifier:
        """Instantiate the modifier registered as ``name``.

        Raises:
            ConfigurationError: If no modifier is registered under ``name``.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ConfigurationError(
                f"Unknown dataset modifier '{name}'. Registered modifiers: {sorted(self._factories)}"
            )
        return factory()

    def resolve(self, modifier: Any) -> DatasetModifier:
        """Return ``modifier`` itself, or the registered modifier when given a name."""
        if isinstance(modifier, str):
            return self.create(modifier)
        return modifier
