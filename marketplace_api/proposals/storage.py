import logging
import posixpath
import uuid

from django.core.files.storage import default_storage

from marketplace_api.exceptions import NotFound

logger = logging.getLogger(__name__)


class AttachmentStorage:
    """
    Object storage boundary for proposal attachments.

    Backed by Django's configured default storage, so swapping the
    ``STORAGES["default"]`` backend moves attachments to a remote bucket
    without touching callers.
    """
    prefix = 'proposal-attachments'

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def owner_prefix(self, owner):
        return f"{self.prefix}/{owner.pk}/"

    def upload(self, file, owner):
        original_name = posixpath.basename(file.name or 'attachment')
        name = self.storage.save(f"{self.owner_prefix(owner)}{uuid.uuid4().hex}/{original_name}", file)
        logger.info(f"Stored attachment {name}")
        return {
            'id': name,
            'url': self.storage.url(name),
            'name': original_name,
            'type': getattr(file, 'content_type', None) or 'file',
        }

    def delete(self, attachment_id, owner):
        normalized = posixpath.normpath(attachment_id or '')
        # Another owner's key reads as missing.
        if not normalized.startswith(self.owner_prefix(owner)) or not self.storage.exists(normalized):
            raise NotFound("Attachment not found.")
        self.storage.delete(normalized)
        logger.info(f"Deleted attachment {normalized}")
