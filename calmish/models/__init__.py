from calmish.models.stored_blob import StoredBlob

__all__ = ["StoredBlob"]
