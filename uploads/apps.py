from django.apps import AppConfig


class UploadsConfig(AppConfig):
    name = "uploads"
    verbose_name = "Uploaded files"

    def ready(self):
        from . import policies  # noqa: F401
