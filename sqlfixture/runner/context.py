"""Per-test execution context shared by the fixture lifecycle components."""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from sqlfixture.dataset.loader import DatasetLoader
from sqlfixture.dataset.models import Dataset
from sqlfixture.dataset.modifiers import DatasetModifier
from sqlfixture.db.connection import ConnectionManager
from sqlfixture.exceptions import DatasetLoadError


@dataclass
class FixtureTestContext:
    """Everything the fixture lifecycle needs to know about one test.

    The context owns ``connections`` for the whole test; the lifecycle closes
    them once ``after_test`` has finished.
    """
    test_class: Any
    test_method: Callable
    connections: ConnectionManager
    dataset_loader: DatasetLoader
    test_exception: Optional[BaseException] = None
    modifiers: Sequence[DatasetModifier] = field(default_factory=tuple)

    @property
    def test_name(self) -> str:
        owner = getattr(self.test_class, '__name__', str(self.test_class))
        return f"{owner}.{getattr(self.test_method, '__name__', self.test_method)}"

    def load_dataset(self, location: str) -> Dataset:
        """Load one dataset through the configured loader.

        Raises:
            DatasetLoadError: If the loader fails or returns nothing.
        """
        try:
            dataset = self.dataset_loader.load_dataset(self.test_class, location)
        except DatasetLoadError:
            raise
        except Exception as e:
            raise DatasetLoadError(f"Unable to load dataset from '{location}': {e}", location=location) from e
        if dataset is None:
            raise DatasetLoadError(
                f"Unable to load dataset from '{location}' using {type(self.dataset_loader).__name__}",
                location=location,
            )
        return dataset

    def load_datasets(self, locations: Sequence[str]) -> List[Dataset]:
        return [self.load_dataset(location) for location in locations]
