from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='onetimecode',
            name='failed_attempts',
            field=models.PositiveSmallIntegerField(default=0, help_text='Wrong codes entered while this code was live'),
        ),
    ]
