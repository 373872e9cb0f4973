"""
Tests for unsupervised abundance / prevalence filtering.
"""

import pandas as pd
import pytest
from mbiome_ml.features.filtering import filter_features


@pytest.fixture
def sparse_abundances():
    return pd.DataFrame(
        {
            "common": [0.20, 0.30, 0.25, 0.10],
            "rare": [0.0, 0.0, 0.0, 0.002],
            "half": [0.0, 0.05, 0.0, 0.01],
        },
        index=["s1", "s2", "s3", "s4"],
    )


class TestFilterFeatures:
    def test_none_returns_input(self, sparse_abundances):
        assert filter_features(sparse_abundances, "none") is sparse_abundances

    def test_abundance_keeps_features_reaching_cutoff(self, sparse_abundances):
        out = filter_features(sparse_abundances, "abundance", 0.01)
        assert out.columns.tolist() == ["common", "half"]

    def test_prevalence_keeps_frequent_features(self, sparse_abundances):
        out = filter_features(sparse_abundances, "prevalence", 0.5)
        assert out.columns.tolist() == ["common", "half"]

        out = filter_features(sparse_abundances, "prevalence", 0.75)
        assert out.columns.tolist() == ["common"]

    def test_preserves_rows(self, sparse_abundances):
        out = filter_features(sparse_abundances, "abundance", 0.01)
        assert out.index.equals(sparse_abundances.index)

    def test_removing_every_feature_raises(self, sparse_abundances):
        with pytest.raises(ValueError, match="removed every feature"):
            filter_features(sparse_abundances, "abundance", 0.9)

    def test_prevalence_cutoff_above_one_raises(self, sparse_abundances):
        with pytest.raises(ValueError, match="prevalence cutoff"):
            filter_features(sparse_abundances, "prevalence", 1.5)

    def test_unknown_method_raises(self, sparse_abundances):
        with pytest.raises(ValueError, match="Unknown filter method"):
            filter_features(sparse_abundances, "variance", 0.1)
