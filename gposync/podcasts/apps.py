from django.apps import AppConfig


class PodcastsConfig(AppConfig):
    name = "gposync.podcasts"
    verbose_name = "Podcasts"
