import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Display name including extension', max_length=255)),
                ('type', models.CharField(choices=[('image', 'Image'), ('document', 'Document'), ('video', 'Video'), ('audio', 'Audio'), ('other', 'Other')], db_index=True, default='other', max_length=16)),
                ('extension', models.CharField(blank=True, default='', max_length=32)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('url', models.URLField(help_text='Public URL derived from the blob id', max_length=500)),
                ('account_id', models.CharField(max_length=36)),
                ('bucket_object_id', models.CharField(help_text='Blob id in the object store', max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='files', to='accounts.account')),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner', '-created_at'], name='files_owner_recent_idx'),
                    models.Index(fields=['owner', 'type'], name='files_owner_type_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(size_bytes__gte=0), name='files_size_bytes_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FileShare',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(db_index=True, max_length=254)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('file', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shares', to='files.file')),
            ],
            options={
                'verbose_name': 'File share',
                'verbose_name_plural': 'File shares',
                'ordering': ['email'],
                'constraints': [
                    models.UniqueConstraint(fields=('file', 'email'), name='file_shares_file_email_unique'),
                ],
            },
        ),
    ]
