"""Content storage: publisher uploads and image payloads."""

from sealbatch.storage.images import ImageLoader, ImageSource, is_url
from sealbatch.storage.publisher import BlobPublisher, parse_blob_id

__all__ = ["BlobPublisher", "ImageLoader", "ImageSource", "is_url", "parse_blob_id"]
