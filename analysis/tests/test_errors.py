"""Tests for the exception hierarchy."""

import pickle

import pytest
from mbiome_ml.errors import (
    AlignmentError,
    CrossValidationError,
    DegenerateFeatureError,
    DegenerateFoldError,
    FoldAlignmentError,
    MbiomeMLError,
    ModelFitError,
    UndefinedAUCError,
)


class TestMessages:
    def test_alignment_error_lists_ids(self):
        err = AlignmentError("mismatch", missing_in_features=["s1"], missing_in_labels=["s2", "s3"])
        assert "not in features: [s1]" in str(err)
        assert "not in labels: [s2, s3]" in str(err)

    def test_long_lists_are_truncated(self):
        err = DegenerateFeatureError("Zero-variance features", features=[f"f{i}" for i in range(25)])
        assert "(15 more)" in str(err)
        assert len(err.features) == 25

    def test_cross_validation_error_names_folds(self):
        err = CrossValidationError("aborted", failed_folds=[2, 4])
        assert "[2, 4]" in str(err)

    @pytest.mark.parametrize(
        "cls",
        [
            AlignmentError,
            FoldAlignmentError,
            DegenerateFeatureError,
            DegenerateFoldError,
            ModelFitError,
            UndefinedAUCError,
            CrossValidationError,
        ],
    )
    def test_all_derive_from_base(self, cls):
        assert issubclass(cls, MbiomeMLError)


class TestPickling:
    """Errors travel back from joblib workers."""

    def test_alignment_error(self):
        err = AlignmentError("mismatch", missing_in_features=["s1"])
        restored = pickle.loads(pickle.dumps(err))
        assert str(restored) == str(err)
        assert restored.missing_in_features == ("s1",)

    def test_degenerate_fold_error(self):
        err = DegenerateFoldError("single class", fold=3, classes=["case"])
        restored = pickle.loads(pickle.dumps(err))
        assert restored.fold == 3
        assert restored.classes == ("case",)

    def test_undefined_auc_error(self):
        err = UndefinedAUCError("undefined", n_positive=4, n_negative=0)
        restored = pickle.loads(pickle.dumps(err))
        assert (restored.n_positive, restored.n_negative) == (4, 0)

    def test_undefined_auc_error_keeps_level_counts(self):
        err = UndefinedAUCError("undefined", n_positive=None, n_negative=None, level_counts={"case": 2})
        restored = pickle.loads(pickle.dumps(err))
        assert restored.n_positive is None
        assert restored.level_counts == {"case": 2}

    def test_fold_alignment_error(self):
        err = FoldAlignmentError("folds differ", unassigned=["s9"])
        restored = pickle.loads(pickle.dumps(err))
        assert str(restored) == "folds differ (without a fold: [s9])"
        assert restored.unassigned == ("s9",)
        assert isinstance(restored, AlignmentError)

    def test_message_not_decorated_twice(self):
        err = DegenerateFeatureError("Zero-variance features", features=["a"])
        restored = pickle.loads(pickle.dumps(err))
        assert str(restored) == "Zero-variance features: [a]"
