import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ChannelSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('channel_name', models.CharField(max_length=255, unique=True)),
                ('platform', models.CharField(blank=True, default='', max_length=50)),
                ('channel_url', models.CharField(blank=True, default='', max_length=2048)),
                ('prompt_text', models.TextField(blank=True, default='')),
                ('prompt_schema', models.TextField(blank=True, default='')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['channel_name'],
                'verbose_name_plural': 'channel settings',
            },
        ),
        migrations.CreateModel(
            name='Note',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('content', models.TextField()),
                ('category', models.CharField(db_index=True, default='other', max_length=100)),
                ('summary', models.TextField(blank=True, default='')),
                ('structured_data', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('source_published_at', models.DateTimeField(blank=True, null=True)),
                ('last_summarized_at', models.DateTimeField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('source_url', models.CharField(blank=True, db_index=True, default='', max_length=2048)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='NoteChunk',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('note_id', models.UUIDField(db_index=True)),
                ('content', models.TextField()),
                ('chunk_index', models.IntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['note_id', 'chunk_index'],
                'indexes': [models.Index(fields=['note_id', 'chunk_index'], name='notes_chunk_note_idx')],
            },
        ),
    ]
