"""
Dataset loading from flat YAML, JSON and CSV files.

YAML and JSON files map table names to lists of rows::

    users:
      - id: 1
        name: alice
    orders: []

A CSV file holds a single table named after the file stem. Relative locations
are resolved against the directory of the module that defines the test class,
then the configured base path, then the working directory.
"""
import inspect
import json
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, List, Optional, Protocol, Union

import pandas as pd
import yaml

from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.exceptions import DatasetLoadError

logger = logging.getLogger(__name__)


class DatasetLoader(Protocol):
    """Loads the dataset declared at ``location`` for ``test_class``."""

    def load_dataset(self, test_class: Any, location: str) -> Dataset:
        ...


class FlatDatasetLoader:
    """Loads flat YAML, JSON and CSV datasets."""

    SUPPORTED_SUFFIXES = ('.yaml', '.yml', '.json', '.csv')

    def __init__(self, base_path: Optional[Union[str, Path]] = None):
        """
        Initialize dataset loader.

        Args:
            base_path: Fallback directory for relative dataset locations
        """
        self.base_path = Path(base_path) if base_path else None

    def load_dataset(self, test_class: Any, location: str) -> Dataset:
        """
        Load the dataset stored at ``location``.

        Args:
            test_class: Test class (or module) the location is relative to
            location: Dataset file path

        Returns:
            Dataset parsed from the file

        Raises:
            DatasetLoadError: If the file cannot be found, read or parsed
        """
        path = self._resolve_path(test_class, location)
        suffix = path.suffix.lower()
        if suffix not in self.SUPPORTED_SUFFIXES:
            raise DatasetLoadError(
                f"Unsupported dataset format '{suffix}' for '{location}'. "
                f"Supported formats: {list(self.SUPPORTED_SUFFIXES)}",
                location=location,
            )

        logger.debug(f"Loading dataset {location} from {path}")
        try:
            if suffix == '.csv':
                return self._load_csv(path)
            with open(path, 'r', encoding='utf-8') as file:
                if suffix == '.json':
                    data = json.load(file)
                else:
                    data = yaml.safe_load(file)
        except (OSError, ValueError, yaml.YAMLError, pd.errors.ParserError) as e:
            raise DatasetLoadError(f"Unable to read dataset '{location}': {e}", location=location) from e

        return self._from_mapping(data, location)

    def _from_mapping(self, data: Any, location: str) -> Dataset:
        if data is None:
            return Dataset()
        if not isinstance(data, dict):
            raise DatasetLoadError(
                f"Dataset '{location}' must map table names to lists of rows",
                location=location,
            )

        tables: List[Table] = []
        for table_name, rows in data.items():
            rows = rows or []
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                raise DatasetLoadError(
                    f"Table '{table_name}' in dataset '{location}' must be a list of rows",
                    location=location,
                )
            tables.append(Table.from_records(str(table_name), rows))
        return Dataset(tables)

    def _load_csv(self, path: Path) -> Dataset:
        try:
            frame = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
        except pd.errors.EmptyDataError:
            frame = pd.DataFrame()
        return Dataset([Table.from_records(path.stem, frame.to_dict('records'), list(frame.columns))])

    def _resolve_path(self, test_class: Any, location: str) -> Path:
        """Resolve a dataset location to an existing file."""
        if not location:
            raise DatasetLoadError("Dataset location must not be empty", location=location)

        path = Path(location)
        candidates: List[Path] = []
        if path.is_absolute():
            candidates.append(path)
        else:
            owner_dir = _source_directory(test_class)
            if owner_dir is not None:
                candidates.append(owner_dir / path)
            if self.base_path is not None:
                candidates.append(self.base_path / path)
            candidates.append(Path.cwd() / path)

        for candidate in candidates:
            if candidate.is_file():
                return candidate

        raise DatasetLoadError(
            f"Dataset '{location}' not found. Searched: {[str(c) for c in candidates]}",
            location=location,
        )


def _source_directory(test_class: Any) -> Optional[Path]:
    """Directory of the source file that defines ``test_class``."""
    if test_class is None:
        return None
    module = test_class if isinstance(test_class, ModuleType) else sys.modules.get(
        getattr(test_class, '__module__', ''), None
    )
    if module is None:
        return None
    try:
        source = inspect.getsourcefile(module) or getattr(module, '__file__', None)
    except TypeError:
        # Built-in or interactively defined module
        return None
    return Path(source).resolve().parent if source else None


def write_dataset(dataset: Dataset, path: Union[str, Path]) -> Path:
    """
    Write ``dataset`` in the flat format implied by the file suffix.

    CSV output holds exactly one table.

    Raises:
        ValueError: If the format is unsupported or a CSV gets several tables
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.csv':
        if len(dataset) != 1:
            raise ValueError("CSV datasets hold exactly one table")
        table = dataset.get_tables()[0]
        table.rows.to_csv(path, index=False)
    elif suffix == '.json':
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(dataset.to_dict(), file, indent=2, default=str)
    elif suffix in ('.yaml', '.yml'):
        with open(path, 'w', encoding='utf-8') as file:
            yaml.safe_dump(dataset.to_dict(), file, default_flow_style=False, sort_keys=False)
    else:
        raise ValueError(f"Unsupported dataset format: {suffix}")
    return path
