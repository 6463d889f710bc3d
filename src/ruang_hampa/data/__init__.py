"""Data layer utilities for loading definitions and persisting records."""

from .errors import DataLoadError, DataReferenceError, DataValidationError, StorageError
from .paths import get_art_path, get_definitions_path, get_repo_root

__all__ = [
    "DataLoadError",
    "DataReferenceError",
    "DataValidationError",
    "StorageError",
    "get_art_path",
    "get_definitions_path",
    "get_repo_root",
]
