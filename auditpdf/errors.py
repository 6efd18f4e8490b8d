from __future__ import annotations


class DocumentBuildError(RuntimeError):
    """The audit document could not be produced at all."""


class StorageError(RuntimeError):
    """The object-storage collaborator rejected or could not take the upload."""
