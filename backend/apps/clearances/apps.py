from django.apps import AppConfig


class ClearancesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.clearances"
    label = "clearances"
    verbose_name = "Clearance requests"
