""" Export and import of all accounts

A dump is a list with one entry per user, holding the user's devices,
podcasts with their episodes, episode actions and settings. Objects refer to
each other by name and URL instead of database ids, so that a dump can be
loaded into another database. Timestamps are ISO 8601 strings.
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from gposync.core.transaction import repository_transaction
from gposync.history.models import EpisodeAction
from gposync.podcasts.models import Podcast, Episode
from gposync.users.commands import validate_username, validate_device_name
from gposync.users.models import Device
from gposync.usersettings.models import UserSetting
from gposync.utils import parse_timestamp

import logging

logger = logging.getLogger(__name__)


def export_all():
    """ Returns the data of all users as JSON-serializable dicts """
    User = get_user_model()

    with repository_transaction():
        return [_export_user(user) for user in User.objects.order_by("username")]


def _export_user(user):
    logger.info("exporting user {user}".format(user=user))

    podcasts = (
        Podcast.objects.for_user(user).order_by("url").prefetch_related("episode_set")
    )

    actions = (
        EpisodeAction.objects.for_user(user)
        .chronological()
        .select_related("podcast", "episode", "device")
    )

    settings = (
        UserSetting.objects.filter(user=user)
        .select_related("device", "podcast", "episode")
        .order_by("id")
    )

    return {
        "user": {
            "username": user.username,
            "email": user.email,
            # the password hash, never the password
            "password": user.password,
            "is_active": user.is_active,
            "date_joined": _isoformat(user.date_joined),
        },
        "devices": [
            {"name": device.name, "caption": device.caption, "type": device.type}
            for device in Device.objects.for_user(user).order_by("name")
        ],
        "podcasts": [
            {
                "url": podcast.url,
                "title": podcast.title,
                "description": podcast.description,
                "website": podcast.website,
                "subscribed": podcast.subscribed,
                "updated": _isoformat(podcast.updated),
                "episodes": [
                    {"url": episode.url, "guid": episode.guid, "title": episode.title}
                    for episode in sorted(
                        podcast.episode_set.all(), key=lambda e: e.url
                    )
                ],
            }
            for podcast in podcasts
        ],
        "actions": [
            {
                "podcast": action.podcast.url,
                "episode": action.episode.url,
                "device": action.device.name if action.device else None,
                "action": action.action,
                "timestamp": _isoformat(action.timestamp),
                "started": action.started,
                "position": action.position,
                "total": action.total,
            }
            for action in actions
        ],
        "settings": [
            {
                "scope": setting.scope,
                "device": setting.device.name if setting.device else None,
                "podcast": setting.podcast.url if setting.podcast else None,
                "episode": setting.episode.url if setting.episode else None,
                "key": setting.key,
                "value": setting.value,
            }
            for setting in settings
        ],
    }


def import_all(data):
    """ Loads a dump created by export_all

    All users are created in one transaction; if anything fails, nothing is
    imported. Users that already exist are a ValidationError. Returns the
    number of imported users """
    if not isinstance(data, list):
        raise ValidationError("a dump must be a list of users", code="invalid-dump")

    with repository_transaction():
        for record in data:
            _import_user(record)

    logger.info("imported {num} users".format(num=len(data)))
    return len(data)


def _import_user(record):
    User = get_user_model()

    info = record["user"]
    username = info["username"]
    validate_username(username)

    logger.info("loading user {user}".format(user=username))

    if User.objects.filter(username=username).exists():
        raise ValidationError(
            "username %(username)s is already taken",
            code="username-taken",
            params={"username": username},
        )

    user = User(
        username=username,
        email=info.get("email", ""),
        password=info["password"],
        is_active=info.get("is_active", True),
    )
    if info.get("date_joined"):
        user.date_joined = parse_timestamp(info["date_joined"])
    user.save()

    devices = {}
    for entry in record.get("devices", []):
        validate_device_name(entry["name"])
        devices[entry["name"]] = Device.objects.create(
            user=user,
            name=entry["name"],
            caption=entry.get("caption", ""),
            type=entry.get("type", Device.OTHER),
        )

    podcasts, episodes = {}, {}
    for entry in record.get("podcasts", []):
        podcast = Podcast.objects.create(
            user=user,
            url=entry["url"],
            title=entry.get("title", ""),
            description=entry.get("description", ""),
            website=entry.get("website", ""),
            subscribed=entry.get("subscribed", False),
            updated=_parse(entry.get("updated")),
        )
        podcasts[podcast.url] = podcast

        for ep in entry.get("episodes", []):
            episode = Episode.objects.create(
                podcast=podcast,
                url=ep["url"],
                guid=ep.get("guid"),
                title=ep.get("title", ""),
            )
            episodes[(podcast.url, episode.url)] = episode

    actions = []
    for entry in record.get("actions", []):
        actions.append(
            EpisodeAction(
                user=user,
                podcast=_lookup(podcasts, entry["podcast"]),
                episode=_lookup(episodes, (entry["podcast"], entry["episode"])),
                device=(
                    _lookup(devices, entry["device"]) if entry.get("device") else None
                ),
                action=entry["action"],
                timestamp=parse_timestamp(entry["timestamp"]),
                started=entry.get("started"),
                position=entry.get("position"),
                total=entry.get("total"),
            )
        )
    EpisodeAction.objects.bulk_create(actions)

    for entry in record.get("settings", []):
        podcast_url = entry.get("podcast")
        UserSetting.objects.create(
            user=user,
            scope=entry["scope"],
            device=_lookup(devices, entry["device"]) if entry.get("device") else None,
            podcast=_lookup(podcasts, podcast_url) if podcast_url else None,
            episode=(
                _lookup(episodes, (podcast_url, entry["episode"]))
                if entry.get("episode")
                else None
            ),
            key=entry["key"],
            value=entry["value"],
        )

    logger.debug(
        "loaded user {user}: {num_devices} devices, {num_podcasts} podcasts, "
        "{num_actions} episode actions".format(
            user=username,
            num_devices=len(devices),
            num_podcasts=len(podcasts),
            num_actions=len(actions),
        )
    )


def _lookup(objects, key):
    try:
        return objects[key]
    except KeyError as ex:
        raise ValidationError(
            "dump refers to unknown object %(key)s",
            code="invalid-dump",
            params={"key": key},
        ) from ex


def _isoformat(value):
    return value.isoformat() if value is not None else None


def _parse(value):
    return parse_timestamp(value) if value else None
