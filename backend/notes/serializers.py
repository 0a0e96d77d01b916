import json

from rest_framework import serializers

from .models import ChannelSettings, Note


class NoteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Note
        fields = [
            "id",
            "title",
            "content",
            "category",
            "summary",
            "structured_data",
            "created_at",
            "source_published_at",
            "last_summarized_at",
            "metadata",
        ]
        read_only_fields = fields


class CreateNoteSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=False)
    title = serializers.CharField(allow_blank=True, default="", max_length=255)
    metadata = serializers.DictField(default=dict)

    def validate_content(self, value):
        """Validate that content is not empty"""
        if not value.strip():
            raise serializers.ValidationError("Content cannot be empty")
        return value


class UpdateNoteSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=False)

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("Content cannot be empty")
        return value


class SearchSerializer(serializers.Serializer):
    query = serializers.CharField()
    limit = serializers.IntegerField(default=0)


class QuestionSerializer(serializers.Serializer):
    question = serializers.CharField()


class AIQuestionSerializer(serializers.Serializer):
    content = serializers.CharField()
    prompt = serializers.CharField()


class SummarizeSerializer(serializers.Serializer):
    noteId = serializers.UUIDField()
    content = serializers.CharField(allow_blank=True, default="")
    promptText = serializers.CharField(allow_blank=True, default="")
    promptSchema = serializers.CharField(allow_blank=True, default="")


class SummarizePromptSerializer(serializers.Serializer):
    promptText = serializers.CharField(allow_blank=True, default="")
    promptSchema = serializers.CharField(allow_blank=True, default="")


class ChannelSettingsSerializer(serializers.ModelSerializer):
    channelName = serializers.CharField(source="channel_name", read_only=True)
    channelUrl = serializers.CharField(source="channel_url", allow_blank=True, default="")
    promptText = serializers.CharField(source="prompt_text", allow_blank=True, default="")
    promptSchema = serializers.CharField(source="prompt_schema", allow_blank=True, default="")
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = ChannelSettings
        fields = ["channelName", "platform", "channelUrl", "promptText", "promptSchema", "updatedAt"]

    def validate_promptSchema(self, value):
        """promptSchema must be valid JSON when provided"""
        if value:
            try:
                json.loads(value)
            except ValueError as exc:
                raise serializers.ValidationError("Invalid JSON in promptSchema") from exc
        return value
