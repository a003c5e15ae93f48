from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='StringRecord',
            fields=[
                ('id', models.CharField(editable=False, max_length=64, primary_key=True, serialize=False)),
                ('value', models.TextField(unique=True)),
                ('length', models.PositiveIntegerField(db_index=True)),
                ('is_palindrome', models.BooleanField(db_index=True)),
                ('unique_characters', models.PositiveIntegerField()),
                ('word_count', models.PositiveIntegerField(db_index=True)),
                ('character_frequency_map', models.JSONField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'String Record',
                'verbose_name_plural': 'String Records',
                'db_table': 'strings',
                'ordering': ['-created_at', 'id'],
            },
        ),
    ]
