""" The episode action log of a user

Actions are only ever appended. They can be read back as the complete log,
or aggregated to the latest action per episode.
"""

from collections import namedtuple

from gposync.core.transaction import repository_transaction
from gposync.history.models import EpisodeAction
from gposync.podcasts.models import Podcast, Episode
from gposync.users.accounts import get_user
from gposync.users.devices import get_device
from gposync.users.models import Device
from gposync.usersettings.models import EPISODE
from gposync.usersettings.settings import FAV_FLAG, TRUE_VALUE
from gposync.utils import normalize_feed_url, to_maxlength

import logging

logger = logging.getLogger(__name__)


EpisodeUpdate = namedtuple(
    "EpisodeUpdate", "title url podcast_title podcast_url status released"
)


def add_episode_actions(cmd):
    """ Appends the actions to the log of the user

    Podcasts, episodes and devices that are referenced for the first time are
    created. Actions whose podcast or episode URL is unusable are skipped.
    Returns the (url, sanitized_url) pairs of URLs that had to be rewritten """
    cmd = cmd.validate()

    update_urls = []

    with repository_transaction():
        user = get_user(cmd.username)

        devices = {}
        entries = []

        for action in cmd.actions:
            podcast_url = _sanitize(action.podcast, update_urls)
            episode_url = _sanitize(action.episode, update_urls)

            if not podcast_url or not episode_url:
                logger.warning(
                    "skipping episode action of {user}: unusable URL {podcast} / "
                    "{episode}".format(
                        user=user, podcast=action.podcast, episode=action.episode
                    )
                )
                continue

            podcast = Podcast.objects.get_or_create_for_url(user, podcast_url)
            episode = Episode.objects.get_or_create_for_url(
                podcast,
                episode_url,
                defaults={"guid": to_maxlength(Episode, "guid", action.guid)},
            )

            device = None
            if action.device:
                if action.device not in devices:
                    devices[action.device] = get_device(user, action.device)
                device = devices[action.device]

            entries.append(
                EpisodeAction(
                    user=user,
                    podcast=podcast,
                    episode=episode,
                    device=device,
                    action=action.action,
                    timestamp=action.timestamp,
                    started=action.started,
                    position=action.position,
                    total=action.total,
                )
            )

        EpisodeAction.objects.bulk_create(entries)

    logger.info(
        "added {num} episode actions for {user}".format(num=len(entries), user=user)
    )
    return update_urls


def _sanitize(url, update_urls):
    s_url = normalize_feed_url(url)
    if s_url != url:
        update_urls.append((url, s_url or ""))
    return s_url


def list_episode_actions(query):
    """ Returns the episode actions of the user, oldest first

    Actions are ordered by their timestamp and, for equal timestamps, by the
    order in which they have been uploaded. With aggregated, only the latest
    action of each episode is returned. All matching actions are returned,
    unless a limit is given, in which case only the latest limit actions are """
    query = query.validate()
    limit = query.limit

    with repository_transaction():
        user = get_user(query.username)

        actions = EpisodeAction.objects.for_user(user).select_related(
            "podcast", "episode", "device"
        )

        if query.device is not None:
            device = Device.objects.filter(user=user, name=query.device).first()
            # a device that does not exist can not have uploaded anything
            if device is not None:
                actions = actions.not_from_device(device)

        if query.podcast is not None:
            podcast = Podcast.objects.get_for_url(user, query.podcast)
            actions = actions.filter(podcast=podcast)

        if query.since is not None:
            actions = actions.since(query.since)

        if query.aggregated:
            actions = _latest_per_episode(actions)

            if limit is not None:
                actions = actions[-limit:]

        elif limit is not None:
            actions = list(actions.order_by("-timestamp", "-id")[:limit])
            actions.reverse()

        else:
            actions = list(actions.chronological())

    logger.info(
        "listing {num} episode actions of {user}".format(num=len(actions), user=user)
    )
    return actions


def get_episode_updates(query):
    """ Returns an EpisodeUpdate for each episode that changed since

    Only the latest action of each episode counts; actions uploaded by the
    querying device itself are left out. The device has to exist. """
    query = query.validate()

    with repository_transaction():
        user = get_user(query.username)
        device = get_device(user, query.device, create=False)

        actions = (
            EpisodeAction.objects.for_user(user)
            .not_from_device(device)
            .select_related("podcast", "episode")
        )

        if query.since is not None:
            actions = actions.since(query.since)

        updates = [
            EpisodeUpdate(
                title=action.episode.title,
                url=action.episode.url,
                podcast_title=action.podcast.title,
                podcast_url=action.podcast.url,
                status=action.action,
                released=action.timestamp,
            )
            for action in _latest_per_episode(actions)
        ]

    logger.info(
        "Episode Updates for {user} on {device}: {num}".format(
            user=user, device=device.name, num=len(updates)
        )
    )
    return updates


def _latest_per_episode(actions):
    """ The latest action of each episode, oldest first """
    # later actions replace earlier ones of the same episode
    latest = {}
    for action in actions.chronological():
        latest[action.episode_id] = action
    return sorted(latest.values(), key=lambda a: (a.timestamp, a.id))


def get_last_action(username, podcast, exclude_deleted=False):
    """ Returns the latest episode action of a podcast

    Raises EpisodeAction.DoesNotExist if there is none """
    with repository_transaction():
        user = get_user(username)
        podcast = Podcast.objects.get_for_url(user, podcast)

        actions = EpisodeAction.objects.for_user(user).filter(podcast=podcast)
        if exclude_deleted:
            actions = actions.exclude(action=EpisodeAction.DELETE)

        action = actions.order_by("-timestamp", "-id").first()

    if action is None:
        raise EpisodeAction.DoesNotExist(
            "no episode actions for {podcast}".format(podcast=podcast.url)
        )

    return action


def get_favorites(username):
    """ Returns the episodes the user has marked as favorite """
    with repository_transaction():
        user = get_user(username)
        episodes = (
            Episode.objects.filter(
                usersetting__user=user,
                usersetting__scope=EPISODE,
                usersetting__key=FAV_FLAG,
                usersetting__value=TRUE_VALUE,
            )
            .select_related("podcast")
            .order_by("podcast__url", "url")
        )
        return list(episodes)
