"""Blob storage for captured images."""

from .blob import BlobStorage, FilesystemBlobStorage
from .images import ImageStore, StoredImage, extension_for, filename_from_url

__all__ = [
    "BlobStorage",
    "FilesystemBlobStorage",
    "ImageStore",
    "StoredImage",
    "extension_for",
    "filename_from_url",
]
