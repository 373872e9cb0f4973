"""
Tests for serialization utilities.

Tests cover:
- joblib save/load with version checks
- JSON export of numpy-typed results
"""

import warnings

import numpy as np
import pytest
from mbiome_ml.utils.serialization import (
    library_versions,
    load_joblib,
    load_json,
    save_joblib,
    save_json,
)


class TestJoblibSerialization:
    def test_save_load_basic_object(self, tmp_path):
        obj = {"key": "value", "number": 42}
        path = tmp_path / "nested" / "test.joblib"

        save_joblib(obj, path)
        assert load_joblib(path, check_versions=False) == obj

    def test_matching_versions_do_not_warn(self, tmp_path):
        path = tmp_path / "bundle.joblib"
        save_joblib({"versions": library_versions(), "payload": 1}, path)

        with warnings.catch_warnings():
            warnings.simplefilter("error", UserWarning)
            assert load_joblib(path)["payload"] == 1

    def test_version_mismatch_warns(self, tmp_path):
        path = tmp_path / "bundle.joblib"
        versions = {**library_versions(), "sklearn": "0.0.1"}
        save_joblib({"versions": versions}, path)

        with pytest.warns(UserWarning, match="version mismatch"):
            load_joblib(path)

    def test_mismatch_ignored_when_not_checking(self, tmp_path):
        path = tmp_path / "bundle.joblib"
        save_joblib({"versions": {"sklearn": "0.0.1"}}, path)

        with warnings.catch_warnings():
            warnings.simplefilter("error", UserWarning)
            load_joblib(path, check_versions=False)


class TestJsonSerialization:
    def test_numpy_types_converted(self, tmp_path):
        path = tmp_path / "metrics.json"
        save_json(
            {
                "auc": np.float64(0.75),
                "n": np.int64(20),
                "sizes": {1: 4, 2: 4},
                "weights": np.array([0.5, -1.0]),
                "missing": float("nan"),
                "pairs": [("a", 1.0)],
            },
            path,
        )

        loaded = load_json(path)
        assert loaded == {
            "auc": 0.75,
            "n": 20,
            "sizes": {"1": 4, "2": 4},
            "weights": [0.5, -1.0],
            "missing": None,
            "pairs": [["a", 1.0]],
        }
