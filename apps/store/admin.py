from django.contrib import admin

from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    """Raw view of store documents, mostly for inspecting seeded data."""

    list_display = ['collection', 'key', 'updated_at']
    list_filter = ['collection']
    search_fields = ['key']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['collection', 'id']
