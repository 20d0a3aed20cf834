from django.apps import AppConfig


class CorrectiveTasksConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.corrective_tasks'
