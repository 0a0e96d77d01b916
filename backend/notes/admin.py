from django.contrib import admin

from .models import ChannelSettings, Note, NoteChunk


@admin.register(Note)
class NoteAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'category', 'created_at', 'last_summarized_at')
    list_filter = ('category', 'created_at')
    search_fields = ('title', 'content', 'source_url')
    readonly_fields = ('id', 'created_at')
    ordering = ('-created_at',)


@admin.register(NoteChunk)
class NoteChunkAdmin(admin.ModelAdmin):
    list_display = ('id', 'note_id', 'chunk_index', 'created_at')
    search_fields = ('note_id',)
    readonly_fields = ('id', 'note_id', 'chunk_index', 'created_at')
    ordering = ('note_id', 'chunk_index')


@admin.register(ChannelSettings)
class ChannelSettingsAdmin(admin.ModelAdmin):
    list_display = ('channel_name', 'platform', 'updated_at')
    search_fields = ('channel_name',)
