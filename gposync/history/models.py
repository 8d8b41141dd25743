from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError

from gposync.podcasts.models import Podcast, Episode
from gposync.users.models import Device

import logging

logger = logging.getLogger(__name__)


class EpisodeActionQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)

    def not_from_device(self, device):
        """ Actions from any other device, or from no device at all """
        return self.filter(models.Q(device__isnull=True) | ~models.Q(device=device))

    def since(self, since):
        return self.filter(timestamp__gt=since)

    def chronological(self):
        return self.order_by("timestamp", "id")


class EpisodeAction(models.Model):
    """ An entry in the episode action log

    Entries are only ever added, never changed """

    DOWNLOAD = "download"
    PLAY = "play"
    DELETE = "delete"
    NEW = "new"
    FLATTR = "flattr"
    EPISODE_ACTIONS = (
        (DOWNLOAD, "downloaded"),
        (PLAY, "played"),
        (DELETE, "deleted"),
        (NEW, "marked as new"),
        (FLATTR, "flattr'd"),
    )

    PLAY_ACTION_KEYS = ("started", "position", "total")

    # the timestamp at which the event happened (provided by the client)
    timestamp = models.DateTimeField()

    # the timestamp at which the event was created (provided by the server)
    created = models.DateTimeField(auto_now_add=True)

    # the user which caused / triggered the event
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)

    # the podcast and episode which were involved in the event
    podcast = models.ForeignKey(Podcast, on_delete=models.CASCADE)
    episode = models.ForeignKey(Episode, on_delete=models.CASCADE)

    # the device on which the event happened; kept when the device is deleted
    device = models.ForeignKey(
        Device, null=True, blank=True, on_delete=models.SET_NULL
    )

    # the action that happened
    action = models.CharField(
        max_length=max(map(len, [action for action, name in EPISODE_ACTIONS])),
        choices=EPISODE_ACTIONS,
    )

    # position (in seconds from the beginning) at which playback was started
    started = models.IntegerField(null=True, blank=True)

    # position (in seconds from the beginning) at which playback was stopped
    position = models.IntegerField(null=True, blank=True)

    # duration (in seconds) of the episode
    total = models.IntegerField(null=True, blank=True)

    objects = EpisodeActionQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["user", "timestamp"], name="history_action_timestamp"),
            models.Index(
                fields=["user", "podcast", "timestamp"], name="history_action_podcast"
            ),
            models.Index(fields=["user", "device"], name="history_action_device"),
        ]

        ordering = ["timestamp", "id"]

    def clean(self):
        """ Validates allowed combinations of time-values """

        # Key found, but must not be supplied (no play action!)
        if self.action != EpisodeAction.PLAY:
            for key in self.PLAY_ACTION_KEYS:
                if getattr(self, key, None) is not None:
                    raise ValidationError('%s only allowed in "play" entries' % key)

    def __str__(self):
        return "{action} {episode} at {timestamp}".format(
            action=self.action, episode=self.episode_id, timestamp=self.timestamp
        )
