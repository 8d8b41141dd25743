from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = "gposync.core"
    verbose_name = "Core"
