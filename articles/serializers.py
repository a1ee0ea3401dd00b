from rest_framework import serializers

from .models import Article


class ArticleSerializer(serializers.ModelSerializer):
    """
    Serializer for Article.

    Status changes go through the publish/archive actions, so ``status`` and
    ``published_at`` are read-only here.
    """

    author_name = serializers.CharField(source='author.public_name', read_only=True)

    class Meta:
        model = Article
        fields = [
            'id',
            'title',
            'slug',
            'excerpt',
            'content',
            'meta_description',
            'tags',
            'status',
            'author',
            'author_name',
            'published_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'author', 'status', 'published_at', 'created_at', 'updated_at']
        extra_kwargs = {'slug': {'required': False}}

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be empty.")
        return value

    def validate_tags(self, value):
        if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
            raise serializers.ValidationError("Tags must be a list of strings.")
        cleaned = []
        for tag in value:
            tag = tag.strip().lower()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned
