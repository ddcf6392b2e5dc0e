"""
Tests for preference stores and the persisted model selection.
"""

import uuid

import yaml

from models.model_record import BUILTIN_MODEL_ID, LEGACY_BUILTIN_ALIAS
from storage.preferences import (
    SELECTED_MODEL_KEY,
    MemoryStore,
    SelectionStore,
    YamlFileStore,
)


class TestSelectionStore:
    """Tests for SelectionStore."""

    def test_missing_selection_defaults_to_builtin(self):
        assert SelectionStore(MemoryStore()).load() == BUILTIN_MODEL_ID

    def test_legacy_alias_maps_to_builtin(self):
        store = MemoryStore({SELECTED_MODEL_KEY: LEGACY_BUILTIN_ALIAS})

        assert SelectionStore(store).load() == BUILTIN_MODEL_ID

    def test_garbage_defaults_to_builtin(self):
        store = MemoryStore({SELECTED_MODEL_KEY: "definitely not a uuid"})

        assert SelectionStore(store).load() == BUILTIN_MODEL_ID

    def test_round_trip(self):
        model_id = uuid.uuid4()
        selection = SelectionStore(MemoryStore())

        selection.save(model_id)

        assert selection.load() == model_id

    def test_builtin_written_as_uuid_not_alias(self):
        store = MemoryStore({SELECTED_MODEL_KEY: LEGACY_BUILTIN_ALIAS})

        SelectionStore(store).save(BUILTIN_MODEL_ID)

        assert store.get(SELECTED_MODEL_KEY) == str(BUILTIN_MODEL_ID)


class TestYamlFileStore:
    """Tests for YamlFileStore."""

    def test_missing_file_reads_none(self, tmp_path):
        assert YamlFileStore(str(tmp_path / "prefs.yaml")).get("anything") is None

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "nested" / "prefs.yaml")
        YamlFileStore(path).set(SELECTED_MODEL_KEY, "abc")

        assert YamlFileStore(path).get(SELECTED_MODEL_KEY) == "abc"

    def test_set_keeps_other_keys(self, tmp_path):
        path = tmp_path / "prefs.yaml"
        path.write_text("theme: dark\n")

        YamlFileStore(str(path)).set("volume", 3)

        assert yaml.safe_load(path.read_text()) == {"theme": "dark", "volume": 3}

    def test_malformed_file_ignored(self, tmp_path):
        path = tmp_path / "prefs.yaml"
        path.write_text("- just\n- a list\n")

        store = YamlFileStore(str(path))

        assert store.get(SELECTED_MODEL_KEY) is None
        assert SelectionStore(store).load() == BUILTIN_MODEL_ID

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "prefs.yaml"
        YamlFileStore(str(path)).set("a", 1)

        assert [p.name for p in tmp_path.iterdir()] == ["prefs.yaml"]
