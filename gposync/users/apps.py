from django.apps import AppConfig


class UsersConfig(AppConfig):
    name = "gposync.users"
    verbose_name = "Users and Devices"
