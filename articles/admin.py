from django.contrib import admin

from .models import Article


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    """Admin interface for Article."""
    list_display = ['title', 'author', 'status', 'published_at', 'updated_at']
    list_filter = ['status', 'published_at']
    search_fields = ['title', 'excerpt', 'content']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'created_at'
