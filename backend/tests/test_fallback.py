"""
Tests for the static fallback dataset.
"""

import json

import pytest

from exceptions import FallbackDatasetError
from records.derivations import derive_stats
from records.fallback import (
    FallbackDataset,
    build_minimal_payload,
    check_consistency,
    validate_payload,
)


def write_payload(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def small_payload():
    records = [
        {"id": "f1", "name": "Alpha", "v1": 5, "v2": 105, "status": "active", "category": "Male"},
        {"id": "f2", "name": "Beta", "v1": 70, "v2": 300, "status": "captured", "category": "Group"},
    ]
    return {
        "all": records,
        "version1": records,
        "version2": records[:1],
        "stats": derive_stats(records),
    }


class TestValidatePayload:
    def test_bundled_dataset_is_valid(self, fallback):
        assert validate_payload(fallback.payload) == []
        assert not fallback.is_minimal

    def test_not_an_object(self):
        assert validate_payload([]) == ["payload must be a JSON object"]

    def test_missing_keys(self):
        problems = validate_payload({"version1": []})
        assert "missing key: version2" in problems
        assert "missing key: stats" in problems

    def test_list_keys_must_be_lists(self, small_payload):
        small_payload["version2"] = {}
        assert validate_payload(small_payload) == ["version2 must be a list"]

    def test_missing_stats_subkey(self, small_payload):
        del small_payload["stats"]["v1Ranges"]
        assert validate_payload(small_payload) == ["missing key: stats.v1Ranges"]

    def test_list_elements_must_be_records(self, small_payload):
        small_payload["all"] = ["oops", 3]
        assert validate_payload(small_payload) == ["all must contain only record objects"]

    @pytest.mark.parametrize("key", ["counts", "percentages", "v1Ranges", "categoryCounts"])
    def test_stats_values_must_be_objects(self, small_payload, key):
        small_payload["stats"][key] = [1, 2]
        assert validate_payload(small_payload) == [f"stats.{key} must be an object"]

    def test_scatter_points_must_be_objects(self, small_payload):
        small_payload["stats"]["v1v2Data"] = [[5, 105]]
        assert validate_payload(small_payload) == ["stats.v1v2Data must contain only objects"]


class TestCheckConsistency:
    def test_bundled_dataset_is_consistent(self, fallback):
        assert check_consistency(fallback.payload) == []

    def test_detects_stale_stats(self, small_payload):
        small_payload["stats"]["counts"]["active"] = 99
        assert check_consistency(small_payload) == [
            "stats does not match the view derived from the records"
        ]


class TestFallbackDatasetLoad:
    def test_load_file(self, tmp_path, small_payload):
        dataset = FallbackDataset.load(write_payload(tmp_path / "f.json", small_payload))
        assert not dataset.is_minimal
        assert [r["id"] for r in dataset.all_records()] == ["f1", "f2"]

    def test_missing_file_uses_minimal_dataset(self, tmp_path):
        dataset = FallbackDataset.load(tmp_path / "missing.json")
        assert dataset.is_minimal
        records = dataset.all_records()
        assert len(records) == 10
        assert records[0] == {
            "id": "dummy_0",
            "name": "Person 1",
            "v1": 0,
            "v2": 100,
            "status": "deceased",
            "category": "Male",
        }
        assert records[9]["status"] == "unknown"
        assert records[9]["category"] == "Female"

    def test_unparsable_file_uses_minimal_dataset(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert FallbackDataset.load(path).is_minimal

    def test_invalid_structure_uses_minimal_dataset(self, tmp_path):
        assert FallbackDataset.load(write_payload(tmp_path / "f.json", {"all": []})).is_minimal

    def test_non_record_entries_use_minimal_dataset(self, tmp_path, small_payload):
        small_payload["all"] = ["oops", 3]
        dataset = FallbackDataset.load(write_payload(tmp_path / "f.json", small_payload))
        assert dataset.is_minimal
        assert dataset.view("status", "active")

    def test_all_records_falls_back_to_version1(self, small_payload):
        del small_payload["all"]
        dataset = FallbackDataset(small_payload)
        assert [r["id"] for r in dataset.all_records()] == ["f1", "f2"]


class TestFallbackDatasetViews:
    def test_preshaped_view(self, small_payload):
        small_payload["version2"] = [{"id": "curated"}]
        dataset = FallbackDataset(small_payload)
        assert dataset.view("version2") == [{"id": "curated"}]

    def test_status_view_is_derived(self, small_payload):
        dataset = FallbackDataset(small_payload)
        assert [r["id"] for r in dataset.view("status", "captured")] == ["f2"]

    def test_minimal_dataset_derives_every_view(self):
        dataset = FallbackDataset(build_minimal_payload(), is_minimal=True)
        assert len(dataset.view("version1")) == 10
        assert len(dataset.view("version2")) == 10
        assert dataset.view("stats")["counts"]["total"] == 10
        assert dataset.view("status")["counts"]["deceased"] == 2


class TestFallbackDatasetReload:
    def test_reload_replaces_payload(self, tmp_path, small_payload):
        path = write_payload(tmp_path / "f.json", small_payload)
        dataset = FallbackDataset.load(path)

        small_payload["all"] = small_payload["all"][:1]
        write_payload(path, small_payload)
        info = dataset.reload()

        assert info["counts"]["all"] == 1
        assert len(dataset.all_records()) == 1

    def test_failed_reload_keeps_previous_copy(self, tmp_path, small_payload):
        path = write_payload(tmp_path / "f.json", small_payload)
        dataset = FallbackDataset.load(path)
        path.write_text("garbage", encoding="utf-8")

        with pytest.raises(FallbackDatasetError):
            dataset.reload()
        assert len(dataset.all_records()) == 2

    def test_reload_rejects_non_record_entries(self, tmp_path, small_payload):
        path = write_payload(tmp_path / "f.json", small_payload)
        dataset = FallbackDataset.load(path)
        write_payload(path, {**small_payload, "version1": ["oops"]})

        with pytest.raises(FallbackDatasetError):
            dataset.reload()
        assert dataset.view("version1") == small_payload["version1"]

    def test_reload_recovers_from_minimal(self, tmp_path, small_payload):
        path = tmp_path / "late.json"
        dataset = FallbackDataset.load(path)
        assert dataset.is_minimal

        write_payload(path, small_payload)
        dataset.reload()
        assert not dataset.is_minimal

    def test_info(self, fallback):
        info = fallback.info()
        assert info["available"] is True
        assert info["has_stats"] is True
        assert info["counts"] == {"all": 12, "version1": 12, "version2": 11, "scatter_points": 12}
