from django.db import migrations, models
import django.utils.timezone

import apps.core.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='CorrectiveTask',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.CharField(default=apps.core.models.generate_document_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('client_id', models.CharField(db_index=True, max_length=32)),
                ('origin_visit_id', models.CharField(blank=True, db_index=True, max_length=32, null=True)),
                ('description', models.TextField()),
                ('priority', models.CharField(choices=[('urgent', 'Urgente'), ('normal', 'Normal'), ('next_visit', 'Próxima Visita')], db_index=True, default='normal', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pendiente'), ('in_progress', 'En Proceso'), ('completed', 'Completada')], db_index=True, default='pending', max_length=20)),
                ('reported_date', models.DateTimeField(blank=True, default=django.utils.timezone.now, null=True)),
                ('reported_by', models.CharField(blank=True, default='', max_length=255)),
                ('completed_date', models.DateTimeField(blank=True, null=True)),
                ('completed_by', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('photos', models.JSONField(blank=True, default=list)),
            ],
            options={
                'ordering': ['-reported_date'],
            },
        ),
    ]
