""" Reading and writing the settings of a user

Settings belong to the account, to a device, to a podcast or to an episode of
a podcast. The objects have to exist; unlike uploads, settings never create
devices. """

from django.core.exceptions import ValidationError

from gposync.core.exceptions import UnknownEpisode
from gposync.core.transaction import repository_transaction
from gposync.podcasts.models import Podcast, Episode
from gposync.users.accounts import get_user
from gposync.users.devices import get_device
from gposync.usersettings import models as m
from gposync.usersettings.commands import SaveSettings, validate_scope
from gposync.usersettings.models import UserSetting
from gposync.usersettings.scopes import (
    AccountScope,
    DeviceScope,
    PodcastScope,
    EpisodeScope,
)
from gposync.usersettings.settings import FAV_FLAG, TRUE_VALUE

import logging

logger = logging.getLogger(__name__)


def resolve_scope(user, scope, device=None, podcast=None, episode=None):
    """ Returns the scope object for the given scope name and arguments

    Raises UnknownDevice, UnknownPodcast or UnknownEpisode if the referenced
    object does not exist """
    validate_scope(scope, device, podcast, episode)

    if scope == m.ACCOUNT:
        return AccountScope()

    if scope == m.DEVICE:
        return DeviceScope(get_device(user, device, create=False))

    podcast_obj = Podcast.objects.get_for_url(user, podcast)

    if scope == m.PODCAST:
        return PodcastScope(podcast_obj)

    if scope == m.EPISODE:
        try:
            episode_obj = Episode.objects.get_by_url_or_guid(podcast_obj, episode)
        except Episode.DoesNotExist as ex:
            raise UnknownEpisode(episode) from ex
        return EpisodeScope(podcast_obj, episode_obj)

    raise ValidationError(
        "invalid scope %(scope)s", code="invalid-scope", params={"scope": scope}
    )


def get_settings(query):
    """ Returns the settings of one scope as a dict """
    query = query.validate()

    with repository_transaction():
        user = get_user(query.username)
        scope = resolve_scope(
            user, query.scope, query.device, query.podcast, query.episode
        )
        return UserSetting.objects.for_scope(user, scope).as_dict()


def save_settings(cmd):
    """ Applies the changes to the settings of one scope

    Returns all settings of the scope after the change """
    cmd = cmd.validate()

    with repository_transaction():
        user = get_user(cmd.username)
        scope = resolve_scope(user, cmd.scope, cmd.device, cmd.podcast, cmd.episode)
        settings = UserSetting.objects.for_scope(user, scope)

        # an empty value removes the setting
        set_ = {key: value for key, value in cmd.set.items() if value != ""}
        remove = cmd.remove + [key for key in cmd.set if key not in set_]

        for key, value in set_.items():
            _set_setting(user, scope, key, value)

        if remove:
            settings.filter(key__in=remove).delete()

        result = settings.as_dict()

    logger.info(
        "saved settings of {user} for {scope}: {num_set} set, {num_remove} "
        "removed".format(
            user=user, scope=scope.name, num_set=len(set_), num_remove=len(remove)
        )
    )
    return result


def _set_setting(user, scope, key, value):
    # the scope columns and the key identify the row
    UserSetting.objects.update_or_create(
        user=user, key=key, defaults={"value": value}, **scope.as_filter()
    )


def set_favorite(username, podcast, episode, favorite=True):
    """ Marks an episode as favorite, or removes the mark """
    cmd = SaveSettings(
        username=username,
        scope=m.EPISODE,
        podcast=podcast,
        episode=episode,
        set={FAV_FLAG: TRUE_VALUE if favorite else ""},
    )
    return save_settings(cmd)
