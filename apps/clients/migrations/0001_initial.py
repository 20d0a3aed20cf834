from django.db import migrations, models

import apps.core.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.CharField(default=apps.core.models.generate_document_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('company_name', models.CharField(db_index=True, max_length=255)),
                ('referent_name', models.CharField(blank=True, default='', max_length=255)),
                ('referent_position', models.CharField(blank=True, default='', max_length=255)),
                ('address', models.CharField(max_length=255)),
                ('contract_ref', models.CharField(blank=True, default='', max_length=100)),
                ('report_emails', models.JSONField(blank=True, default=list)),
                ('frequency', models.CharField(choices=[('weekly', 'Semanal'), ('monthly', 'Mensual'), ('bimonthly', 'Bimestral')], default='monthly', max_length=20)),
            ],
            options={
                'ordering': ['company_name'],
            },
        ),
    ]
