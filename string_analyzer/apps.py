from django.apps import AppConfig


class StringAnalyzerConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'string_analyzer'
    verbose_name = 'String Analyzer'
