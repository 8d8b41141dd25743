from django.apps import AppConfig


class UserSettingsConfig(AppConfig):
    name = "gposync.usersettings"
    verbose_name = "User Settings"
