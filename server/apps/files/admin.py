"""Django admin configuration for files app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.files.logic.file_operations import delete_file
from server.apps.files.models import File, FileShare


def _format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


class FileShareInline(admin.TabularInline):  # type: ignore[type-arg]
    """Inline list of emails a file is shared with."""

    model = FileShare
    extra = 0
    readonly_fields = ['created_at']


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model.

    Deletes go through the delete protocol, so blobs are removed after
    their records.
    """

    list_display = [
        'name',
        'owner',
        'type',
        'size_display',
        'created_at',
        'updated_at',
    ]

    list_filter = [
        'type',
        'created_at',
    ]

    search_fields = [
        'name',
        'bucket_object_id',
        'owner__email',
    ]

    readonly_fields = [
        'type',
        'extension',
        'size_bytes',
        'url',
        'owner',
        'account_id',
        'bucket_object_id',
        'created_at',
        'updated_at',
    ]

    inlines = [FileShareInline]

    fieldsets = (
        ('File Information', {
            'fields': ('name', 'owner', 'account_id'),
        }),
        ('Metadata', {
            'fields': (
                'type',
                'extension',
                'size_bytes',
            ),
        }),
        ('Storage', {
            'fields': ('bucket_object_id', 'url'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string.
        """
        return _format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Files are only created by uploads."""
        return False

    def delete_model(self, request: HttpRequest, obj: File) -> None:
        """Delete one file record and its blob.

        Args:
            request: HTTP request.
            obj: File to delete.
        """
        delete_file(obj.owner, obj.pk)

    def delete_queryset(self, request: HttpRequest, queryset: QuerySet[File]) -> None:
        """Delete selected file records and their blobs.

        Args:
            request: HTTP request.
            queryset: Files to delete.
        """
        for file_instance in queryset.select_related('owner'):
            delete_file(file_instance.owner, file_instance.pk)

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('owner')
