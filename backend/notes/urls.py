from django.urls import path

from .views import (
    AIQuestionView,
    AskView,
    CategoriesView,
    CategoryStatsView,
    ChannelListView,
    ChannelNotesView,
    ChannelSettingsDetailView,
    ChannelSettingsListView,
    ClassifyNotesView,
    NoteDetailView,
    NoteListView,
    NotesByCategoryView,
    QueueStatusView,
    RegenerateTitlesView,
    SearchView,
    SummarizeNoteView,
    SummarizeView,
)

urlpatterns = [
    # Notes
    path('notes/', NoteListView.as_view(), name='note_list'),
    path('notes/<uuid:note_id>/', NoteDetailView.as_view(), name='note_detail'),
    path('notes/category/<str:category>/', NotesByCategoryView.as_view(), name='notes_by_category'),

    # Search and Q&A
    path('search/', SearchView.as_view(), name='search'),
    path('ask/', AskView.as_view(), name='ask'),
    path('ai-question/', AIQuestionView.as_view(), name='ai_question'),

    # Summaries
    path('summarize/', SummarizeView.as_view(), name='summarize'),
    path('summarize/<uuid:note_id>/', SummarizeNoteView.as_view(), name='summarize_note'),

    # Categories
    path('categories/', CategoriesView.as_view(), name='categories'),
    path('categories/stats/', CategoryStatsView.as_view(), name='category_stats'),

    # Migrations
    path('migrate/classify/', ClassifyNotesView.as_view(), name='migrate_classify'),
    path('migrate/titles/', RegenerateTitlesView.as_view(), name='migrate_titles'),

    # Channels
    path('channels/', ChannelListView.as_view(), name='channel_list'),
    path('channels/<str:channel>/notes/', ChannelNotesView.as_view(), name='channel_notes'),
    path('channel-settings/', ChannelSettingsListView.as_view(), name='channel_settings_list'),
    path('channel-settings/<str:channel>/', ChannelSettingsDetailView.as_view(), name='channel_settings_detail'),

    # Queue
    path('queue/status/', QueueStatusView.as_view(), name='queue_status'),
]
