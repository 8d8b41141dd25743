from django.db import models
from django.db.models import Q
from django.conf import settings

from gposync.podcasts.models import Podcast, Episode
from gposync.users.models import Device

import logging

logger = logging.getLogger(__name__)


ACCOUNT = "account"
DEVICE = "device"
PODCAST = "podcast"
EPISODE = "episode"

SCOPES = (
    (ACCOUNT, "Account"),
    (DEVICE, "Device"),
    (PODCAST, "Podcast"),
    (EPISODE, "Episode"),
)


class UserSettingQuerySet(models.QuerySet):
    def for_scope(self, user, scope):
        """ Settings rows of user whose scope tuple matches scope exactly """
        return self.filter(user=user, **scope.as_filter())

    def as_dict(self):
        return {setting.key: setting.value for setting in self}


class UserSetting(models.Model):
    """ Stores one setting of a user, device, podcast or episode

    Which of device, podcast and episode are set is determined by the scope;
    the others are NULL """

    # the user for which the setting is stored
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)

    scope = models.CharField(
        max_length=max(len(k) for k, v in SCOPES), choices=SCOPES
    )

    device = models.ForeignKey(Device, null=True, blank=True, on_delete=models.CASCADE)
    podcast = models.ForeignKey(
        Podcast, null=True, blank=True, on_delete=models.CASCADE
    )
    episode = models.ForeignKey(
        Episode, null=True, blank=True, on_delete=models.CASCADE
    )

    key = models.CharField(max_length=100)

    value = models.TextField(null=False)

    objects = UserSettingQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(
                        scope=ACCOUNT,
                        device__isnull=True,
                        podcast__isnull=True,
                        episode__isnull=True,
                    )
                    | Q(
                        scope=DEVICE,
                        device__isnull=False,
                        podcast__isnull=True,
                        episode__isnull=True,
                    )
                    | Q(
                        scope=PODCAST,
                        device__isnull=True,
                        podcast__isnull=False,
                        episode__isnull=True,
                    )
                    | Q(
                        scope=EPISODE,
                        device__isnull=True,
                        podcast__isnull=False,
                        episode__isnull=False,
                    )
                ),
                name="usersettings_scope_fields",
            ),
            # NULLs are distinct in unique constraints, so there is one
            # constraint per scope
            models.UniqueConstraint(
                fields=["user", "key"],
                condition=Q(scope=ACCOUNT),
                name="usersettings_unique_account",
            ),
            models.UniqueConstraint(
                fields=["user", "device", "key"],
                condition=Q(scope=DEVICE),
                name="usersettings_unique_device",
            ),
            models.UniqueConstraint(
                fields=["user", "podcast", "key"],
                condition=Q(scope=PODCAST),
                name="usersettings_unique_podcast",
            ),
            models.UniqueConstraint(
                fields=["user", "podcast", "episode", "key"],
                condition=Q(scope=EPISODE),
                name="usersettings_unique_episode",
            ),
        ]

        verbose_name_plural = "User Settings"
        verbose_name = "User Setting"

    def __str__(self):
        return "{key}={value} ({scope})".format(
            key=self.key, value=self.value, scope=self.scope
        )
