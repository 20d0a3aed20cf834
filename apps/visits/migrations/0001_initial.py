from django.db import migrations, models

import apps.core.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Visit',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.CharField(default=apps.core.models.generate_document_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('client_id', models.CharField(db_index=True, max_length=32)),
                ('scheduled_date', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('status', models.CharField(choices=[('scheduled', 'Programada'), ('completed', 'Completada')], db_index=True, default='scheduled', max_length=20)),
                ('technicians', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('completed_date', models.DateTimeField(blank=True, null=True)),
                ('is_past_date_visit', models.BooleanField(default=False)),
            ],
            options={
                'ordering': ['scheduled_date'],
            },
        ),
    ]
