"""notebook-lens: normalization and job tracking for notebook retrieval backends."""

__version__ = "0.1.0"
