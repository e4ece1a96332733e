"""Notebook-level orchestration."""

from lens.notebook.service import NotebookService

__all__ = ["NotebookService"]
