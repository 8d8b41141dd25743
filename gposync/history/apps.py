from django.apps import AppConfig


class HistoryConfig(AppConfig):
    name = "gposync.history"
    verbose_name = "History"
