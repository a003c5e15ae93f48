from django.contrib import admin
from .models import StringRecord


@admin.register(StringRecord)
class StringRecordAdmin(admin.ModelAdmin):
    """
    Read-only admin for analyzed strings. Records are only created through
    the API so the content address always matches the value.
    """
    list_display = [
        'short_value',
        'length',
        'is_palindrome',
        'word_count',
        'unique_characters',
        'created_at',
    ]
    list_filter = ['is_palindrome', 'word_count', 'created_at']
    search_fields = ['value', 'id']
    ordering = ['-created_at']
    readonly_fields = [
        'id', 'value', 'length', 'is_palindrome', 'unique_characters',
        'word_count', 'character_frequency_map', 'created_at',
    ]

    fieldsets = (
        ('String', {
            'fields': ('id', 'value')
        }),
        ('Properties', {
            'fields': ('length', 'is_palindrome', 'unique_characters',
                       'word_count', 'character_frequency_map')
        }),
        ('Metadata', {
            'fields': ('created_at',),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Value')
    def short_value(self, obj):
        return obj.value[:50]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
