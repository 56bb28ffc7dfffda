import os
import uuid

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage


def upload(data, filename, folder="reports"):
    """Store bytes (or a Django File) and return the storage reference."""
    ext = os.path.splitext(filename or "")[1].lower()
    name = f"{folder}/{uuid.uuid4().hex}{ext}"
    content = ContentFile(data) if isinstance(data, bytes) else data
    return default_storage.save(name, content)


def resolve(ref):
    if not ref:
        return ""
    return default_storage.url(ref)
