from django.db import models


class Document(models.Model):
    """A keyed JSON document inside a named collection."""

    collection = models.CharField(max_length=100)
    key = models.CharField(max_length=200)
    data = models.JSONField(default=dict, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'store_documents'
        constraints = [
            models.UniqueConstraint(
                fields=['collection', 'key'],
                name='unique_document_key_per_collection',
            ),
        ]
        indexes = [
            models.Index(fields=['collection', 'id'], name='store_doc_collection_idx'),
        ]
        ordering = ['id']

    def __str__(self):
        return f"{self.collection}/{self.key}"

    def as_record(self):
        """Return the document data with the store key attached as ``id``."""
        return {'id': self.key, **self.data}
