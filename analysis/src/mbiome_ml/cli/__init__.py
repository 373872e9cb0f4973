"""Command-line interface for mbiome-ml."""
