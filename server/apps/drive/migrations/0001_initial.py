import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Item',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item_type', models.CharField(choices=[('file', 'File'), ('folder', 'Folder')], max_length=6)),
                ('name', models.CharField(max_length=255)),
                ('storage_ref', models.CharField(blank=True, help_text='Random blob name in storage, never shown to clients', max_length=64, null=True, unique=True)),
                ('mime_type', models.CharField(blank=True, max_length=255, null=True)),
                ('size_bytes', models.BigIntegerField(default=0, help_text='File size in bytes (0 for folders)')),
                ('extension', models.CharField(blank=True, max_length=32, null=True)),
                ('is_encrypted', models.BooleanField(default=False)),
                ('encryption_iv', models.CharField(blank=True, max_length=64, null=True)),
                ('encryption_auth_tag', models.CharField(blank=True, max_length=64, null=True)),
                ('is_starred', models.BooleanField(default=False)),
                ('is_trashed', models.BooleanField(db_index=True, default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('last_accessed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='drive.item')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Item',
                'verbose_name_plural': 'Items',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['user', 'parent'], name='items_user_parent_idx'),
                    models.Index(fields=['user', '-last_accessed_at'], name='items_user_recent_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(models.Q(('item_type', 'file'), ('storage_ref__isnull', False)), models.Q(('item_type', 'folder'), ('storage_ref__isnull', True)), _connector='OR'), name='items_storage_ref_matches_type'),
                    models.CheckConstraint(condition=models.Q(('size_bytes__gte', 0)), name='items_size_bytes_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UserQuota',
            fields=[
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='quota', serialize=False, to=settings.AUTH_USER_MODEL)),
                ('quota_bytes', models.BigIntegerField(default=10737418240, help_text='Storage quota limit in bytes')),
            ],
            options={
                'verbose_name': 'User Quota',
                'verbose_name_plural': 'User Quotas',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quota_bytes__gte', 0)), name='quota_bytes_non_negative'),
                ],
            },
        ),
    ]
