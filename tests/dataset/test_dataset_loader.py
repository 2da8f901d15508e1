"""Tests for flat dataset files: loading, path resolution and writing."""

import json
from pathlib import Path

import pytest

from sqlfixture.dataset.loader import FlatDatasetLoader, write_dataset
from sqlfixture.dataset.models import Dataset
from sqlfixture.exceptions import DatasetLoadError


class TestFlatDatasetLoader:
    """Test loading YAML, JSON and CSV datasets."""

    @pytest.fixture
    def loader(self, tmp_path):
        return FlatDatasetLoader(tmp_path)

    def test_load_yaml(self, loader, tmp_path):
        (tmp_path / "users.yaml").write_text(
            "users:\n"
            "  - id: 1\n"
            "    name: alice\n"
            "  - id: 2\n"
            "    name: bob\n"
            "    email: bob@example.com\n"
            "orders: []\n",
            encoding="utf-8",
        )

        dataset = loader.load_dataset(None, "users.yaml")

        assert dataset.get_table_names() == ["users", "orders"]
        users = dataset.get_table("users")
        assert users.metadata.get_column_names() == ["id", "name", "email"]
        assert users.get_value(0, "email") is None
        assert dataset.get_table("orders").row_count == 0

    def test_load_json(self, loader, tmp_path):
        (tmp_path / "orders.json").write_text(
            json.dumps({"orders": [{"id": 10, "user_id": 1, "amount": 25.5}]}), encoding="utf-8"
        )

        dataset = loader.load_dataset(None, "orders.json")

        assert dataset.get_table("orders").to_records() == [{"id": 10, "user_id": 1, "amount": 25.5}]

    def test_load_csv(self, loader, tmp_path):
        """A CSV file is one table named after the file; empty cells are null."""
        (tmp_path / "users.csv").write_text("id,name,email\n1,alice,\n2,bob,bob@example.com\n",
                                            encoding="utf-8")

        dataset = loader.load_dataset(None, "users.csv")

        users = dataset.get_table("users")
        assert users.get_value(0, "id") == "1"
        assert users.get_value(0, "email") is None
        assert users.get_value(1, "email") == "bob@example.com"

    def test_empty_yaml_is_empty_dataset(self, loader, tmp_path):
        (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
        assert len(loader.load_dataset(None, "empty.yaml")) == 0

    def test_relative_to_test_module(self):
        """Relative locations resolve against the directory of the test class's module."""
        loader = FlatDatasetLoader()
        with pytest.raises(DatasetLoadError) as exc_info:
            loader.load_dataset(TestFlatDatasetLoader, "no_such_dataset.yaml")
        assert str(Path(__file__).resolve().parent) in str(exc_info.value)

    def test_absolute_location(self, tmp_path):
        path = tmp_path / "abs.yaml"
        path.write_text("users: []\n", encoding="utf-8")
        assert FlatDatasetLoader().load_dataset(None, str(path)).has_table("users")

    def test_missing_file(self, loader):
        with pytest.raises(DatasetLoadError) as exc_info:
            loader.load_dataset(None, "missing.yaml")
        assert exc_info.value.location == "missing.yaml"

    def test_unsupported_format(self, loader, tmp_path):
        (tmp_path / "users.xml").write_text("<dataset/>", encoding="utf-8")
        with pytest.raises(DatasetLoadError, match="Unsupported"):
            loader.load_dataset(None, "users.xml")

    def test_malformed_rows(self, loader, tmp_path):
        (tmp_path / "bad.yaml").write_text("users: not-a-list\n", encoding="utf-8")
        with pytest.raises(DatasetLoadError, match="list of rows"):
            loader.load_dataset(None, "bad.yaml")

    def test_invalid_yaml(self, loader, tmp_path):
        (tmp_path / "broken.yaml").write_text("users: [\n", encoding="utf-8")
        with pytest.raises(DatasetLoadError, match="Unable to read"):
            loader.load_dataset(None, "broken.yaml")

    def test_empty_location(self, loader):
        with pytest.raises(DatasetLoadError):
            loader.load_dataset(None, "")


class TestWriteDataset:
    """Test writing datasets back to flat files."""

    def test_yaml_written_dataset_loads_back(self, tmp_path):
        dataset = Dataset.from_dict({
            "users": [{"id": 1, "name": "alice", "email": None}],
            "orders": [{"id": 10, "user_id": 1, "amount": 12.5}],
        })

        path = write_dataset(dataset, tmp_path / "snapshot.yaml")
        loaded = FlatDatasetLoader().load_dataset(None, str(path))

        assert loaded == dataset

    def test_csv_requires_single_table(self, tmp_path):
        dataset = Dataset.from_dict({"users": [], "orders": []})
        with pytest.raises(ValueError, match="exactly one table"):
            write_dataset(dataset, tmp_path / "out.csv")

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            write_dataset(Dataset(), tmp_path / "out.txt")
