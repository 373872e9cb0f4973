"""
Data schema definitions and constants.

Defines column names and numeric constants shared across the pipeline.
"""

# ============================================================================
# Column Names
# ============================================================================

# Sample identifier column in label / metadata tables
ID_COL = "sample_id"

# Outcome column in label tables
LABEL_COL = "label"

# Fold column in persisted fold assignments
FOLD_COL = "fold"

# Out-of-fold score column in persisted predictions
SCORE_COL = "score"

# ============================================================================
# Numerical Constants
# ============================================================================

# Pseudocount added before log10 so that zero abundances stay finite
DEFAULT_PSEUDOCOUNT = 1e-6

# Standard deviations below this are treated as zero variance
MIN_STD = 1e-12
