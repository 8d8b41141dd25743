from django.db import models
from django.conf import settings

from gposync.core.exceptions import UnknownPodcast
from gposync.core.models import UpdateInfoModel
from gposync.utils import normalize_feed_url

import logging

logger = logging.getLogger(__name__)


class TitleModel(models.Model):
    """ Model that has a title """

    title = models.CharField(max_length=1000, null=False, blank=True)

    def __str__(self):
        return self.title

    class Meta:
        abstract = True


class PodcastQuerySet(models.QuerySet):
    """ Custom queries for Podcasts """

    def for_user(self, user):
        return self.filter(user=user)

    def subscribed(self):
        """ Podcasts to which the user is currently subscribed """
        return self.filter(subscribed=True)

    def changed_since(self, since):
        """ Podcasts whose subscription state changed after since

        Podcasts that have never been subscribed to carry no timestamp and are
        never included """
        return self.filter(updated__gt=since)


class PodcastManager(models.Manager.from_queryset(PodcastQuerySet)):
    """ Manager for the Podcast model """

    def get_for_url(self, user, url):
        """ Returns the user's podcast with the given URL

        The URL is sanitized before the lookup; raises UnknownPodcast if the
        user has no such podcast """
        s_url = normalize_feed_url(url) or url
        try:
            return self.get(user=user, url=s_url)
        except self.model.DoesNotExist as ex:
            raise UnknownPodcast(url) from ex

    def get_or_create_for_url(self, user, url, defaults=None):
        """ Returns the user's podcast with the given URL

        The URL must already be sanitized. A new podcast starts out
        unsubscribed and without an update timestamp """
        podcast, created = self.get_or_create(
            user=user, url=url, defaults=defaults or {}
        )

        if created:
            logger.debug("created podcast %s for %s", url, user)

        return podcast


class Podcast(TitleModel, UpdateInfoModel):
    """ A podcast feed, as seen by one user """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)

    url = models.CharField(max_length=2048)

    description = models.TextField(null=False, blank=True)

    website = models.CharField(max_length=2048, null=False, blank=True)

    # whether the user is currently subscribed to the podcast
    subscribed = models.BooleanField(default=False)

    # client timestamp of the last change of "subscribed"; None if the
    # podcast has never been subscribed to
    updated = models.DateTimeField(null=True)

    objects = PodcastManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "url"], name="podcasts_podcast_unique_url"
            )
        ]
        indexes = [
            models.Index(fields=["user", "updated"], name="podcasts_podcast_updated")
        ]

    def set_subscribed(self, timestamp):
        """ Marks the podcast as subscribed at timestamp

        Returns True if the subscription state has changed. Nothing is written
        for podcasts that are already subscribed """
        return self._set_state(True, timestamp)

    def set_unsubscribed(self, timestamp):
        """ Marks the podcast as unsubscribed at timestamp

        Returns True if the subscription state has changed """
        return self._set_state(False, timestamp)

    def _set_state(self, subscribed, timestamp):
        if self.subscribed == subscribed:
            return False

        self.subscribed = subscribed
        self.updated = timestamp
        self.save(update_fields=["subscribed", "updated", "modified"])
        return True

    def __str__(self):
        return self.title or self.url


class EpisodeQuerySet(models.QuerySet):
    """ QuerySet for Episodes """

    def by_url_or_guid(self, urls, guid):
        return self.filter(models.Q(url__in=urls) | models.Q(guid=guid))


class EpisodeManager(models.Manager.from_queryset(EpisodeQuerySet)):
    """ Custom queries for Episodes """

    def get_or_create_for_url(self, podcast, url, defaults=None):
        episode, created = self.get_or_create(
            podcast=podcast, url=url, defaults=defaults or {}
        )

        if not created and defaults and defaults.get("guid") and not episode.guid:
            episode.guid = defaults["guid"]
            episode.save(update_fields=["guid", "modified"])

        return episode

    def get_by_url_or_guid(self, podcast, value):
        """ Looks up an episode of podcast by its URL or its GUID

        A match on the URL takes precedence """
        urls = {url for url in (value, normalize_feed_url(value)) if url}
        episodes = self.filter(podcast=podcast).by_url_or_guid(urls, value)
        for episode in episodes:
            if episode.url in urls:
                return episode

        episode = episodes.order_by("id").first()
        if episode is None:
            raise self.model.DoesNotExist(value)

        return episode


class Episode(TitleModel, UpdateInfoModel):
    """ An episode of a podcast """

    podcast = models.ForeignKey(Podcast, on_delete=models.CASCADE)

    url = models.CharField(max_length=2048)

    guid = models.CharField(max_length=200, null=True)

    objects = EpisodeManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["podcast", "url"], name="podcasts_episode_unique_url"
            )
        ]

    def __str__(self):
        return self.title or self.url
