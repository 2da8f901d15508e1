"""Datasets: in-memory tables, loaders and modifiers."""

from sqlfixture.dataset.models import (
    Column,
    CompositeDataset,
    Dataset,
    Table,
    TableMetaData,
    is_null,
)
from sqlfixture.dataset.loader import DatasetLoader, FlatDatasetLoader, write_dataset
from sqlfixture.dataset.modifiers import (
    IDENTITY,
    DatasetModifier,
    ModifierChain,
    ModifierRegistry,
    ReplacementModifier,
)

__all__ = [
    "Column",
    "CompositeDataset",
    "Dataset",
    "Table",
    "TableMetaData",
    "is_null",
    "DatasetLoader",
    "FlatDatasetLoader",
    "write_dataset",
    "IDENTITY",
    "DatasetModifier",
    "ModifierChain",
    "ModifierRegistry",
    "ReplacementModifier",
]
