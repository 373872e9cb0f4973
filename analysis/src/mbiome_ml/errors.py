"""
Exception hierarchy for the mbiome-ml pipeline.

Every error names the samples, features or folds that triggered it so that
failures can be traced back to the offending data instead of a generic message.

Errors are pickled when they travel back from joblib workers, so extra
attributes are restored through ``__reduce__``.
"""

from collections.abc import Iterable, Sequence


def _preview(items: Iterable, limit: int = 10) -> str:
    """Render up to ``limit`` items for an error message."""
    items = [str(i) for i in items]
    if len(items) <= limit:
        return ", ".join(items)
    return ", ".join(items[:limit]) + f", ... ({len(items) - limit} more)"


class MbiomeMLError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __reduce__(self):
        return (self.__class__, (self.message,), self.__dict__)


class AlignmentError(MbiomeMLError):
    """Feature matrix and labels (or folds) do not cover the same samples."""

    def __init__(
        self,
        message: str,
        *,
        missing_in_features: Sequence[str] = (),
        missing_in_labels: Sequence[str] = (),
    ):
        self.missing_in_features = tuple(missing_in_features)
        self.missing_in_labels = tuple(missing_in_labels)
        details = []
        if self.missing_in_features:
            details.append(f"not in features: [{_preview(self.missing_in_features)}]")
        if self.missing_in_labels:
            details.append(f"not in labels: [{_preview(self.missing_in_labels)}]")
        if details:
            message = f"{message} ({'; '.join(details)})"
        super().__init__(message)


class FoldAlignmentError(AlignmentError):
    """A fold assignment and the dataset it is applied to hold different samples."""

    def __init__(self, message: str, *, unassigned: Sequence[str] = (), unknown: Sequence[str] = ()):
        self.unassigned = tuple(unassigned)
        self.unknown = tuple(unknown)
        details = []
        if self.unassigned:
            details.append(f"without a fold: [{_preview(self.unassigned)}]")
        if self.unknown:
            details.append(f"assigned but not in dataset: [{_preview(self.unknown)}]")
        if details:
            message = f"{message} ({'; '.join(details)})"
        MbiomeMLError.__init__(self, message)


class DegenerateFeatureError(MbiomeMLError):
    """Zero-variance feature(s) encountered while fitting normalization."""

    def __init__(self, message: str, *, features: Sequence[str] = ()):
        self.features = tuple(features)
        if self.features:
            message = f"{message}: [{_preview(self.features)}]"
        super().__init__(message)


class DegenerateFoldError(MbiomeMLError):
    """A training partition contains a single label class."""

    def __init__(self, message: str, *, fold: int | None = None, classes: Sequence = ()):
        self.fold = fold
        self.classes = tuple(classes)
        super().__init__(message)


class ModelFitError(MbiomeMLError):
    """Opaque failure raised by the pluggable linear model."""

    def __init__(self, message: str, *, fold: int | None = None):
        self.fold = fold
        super().__init__(message)


class UndefinedAUCError(MbiomeMLError):
    """AUC requested for an evaluation set holding a single class.

    ``n_positive``/``n_negative`` are None when the positive class cannot be
    told from the one level present; ``level_counts`` is always filled in by
    the ROC code.
    """

    def __init__(
        self,
        message: str,
        *,
        n_positive: int | None = 0,
        n_negative: int | None = 0,
        level_counts: dict | None = None,
    ):
        self.n_positive = n_positive
        self.n_negative = n_negative
        self.level_counts = dict(level_counts or {})
        super().__init__(message)


class CrossValidationError(MbiomeMLError):
    """One or more folds failed and the run was configured to abort."""

    def __init__(
        self,
        message: str,
        *,
        failed_folds: Sequence[int] = (),
        missing_samples: Sequence[str] = (),
    ):
        self.failed_folds = tuple(failed_folds)
        self.missing_samples = tuple(missing_samples)
        if self.failed_folds:
            message = f"{message} (failed folds: {list(self.failed_folds)})"
        super().__init__(message)
