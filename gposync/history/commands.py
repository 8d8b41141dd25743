from collections import namedtuple

from django.core.exceptions import ValidationError

from gposync.history.models import EpisodeAction
from gposync.core.commands import validate_since, validate_timestamp
from gposync.users.commands import validate_username, validate_device_name
from gposync.utils import parse_time

import logging

logger = logging.getLogger(__name__)


VALID_ACTIONS = [action for action, name in EpisodeAction.EPISODE_ACTIONS]


class EpisodeActionData(
    namedtuple(
        "EpisodeActionData",
        "podcast episode action device timestamp started position total guid",
        defaults=(None, None, None, None, None, None),
    )
):
    """ An episode action as uploaded by a client

    podcast and episode are the URLs as sent by the client """

    def validate(self):
        """ Raises ValidationError for bad input

        Returns the action with timestamp and time values parsed """
        action = self.action.lower() if isinstance(self.action, str) else self.action
        if action not in VALID_ACTIONS:
            raise ValidationError(
                "invalid action %(action)s",
                code="invalid-action",
                params={"action": self.action},
            )

        if not isinstance(self.podcast, str) or not isinstance(self.episode, str):
            raise ValidationError(
                "podcast and episode must be given", code="missing-urls"
            )

        if self.device is not None:
            validate_device_name(self.device)

        times = {
            key: self._parse_time(key, getattr(self, key))
            for key in EpisodeAction.PLAY_ACTION_KEYS
        }

        # only checks the combination of values, nothing is saved
        EpisodeAction(action=action, **times).clean()

        return self._replace(
            action=action, timestamp=validate_timestamp(self.timestamp), **times
        )

    @staticmethod
    def _parse_time(key, value):
        if value is None:
            return None

        try:
            value = parse_time(value)
        except (ValueError, TypeError) as ex:
            raise ValidationError(
                "invalid value for %(key)s: %(value)s",
                code="invalid-time",
                params={"key": key, "value": value},
            ) from ex

        if value < 0:
            raise ValidationError(
                "%(key)s must not be negative", code="invalid-time", params={"key": key}
            )

        return value


class AddEpisodeActions(namedtuple("AddEpisodeActions", "username actions")):
    """ Appends episode actions to the log of the user """

    def validate(self):
        validate_username(self.username)

        if isinstance(self.actions, (str, dict)):
            raise ValidationError("actions must be a list", code="invalid-actions")

        # all actions are validated before the first one is stored
        actions = []
        for n, action in enumerate(self.actions):
            try:
                actions.append(action.validate())
            except ValidationError as ex:
                logger.warning(
                    "invalid episode action #{n} of {user}: {err}".format(
                        n=n, user=self.username, err=ex
                    )
                )
                raise

        return self._replace(actions=actions)


class ListEpisodeActions(
    namedtuple(
        "ListEpisodeActions",
        "username device podcast since aggregated limit",
        defaults=(None, None, None, False, None),
    )
):
    """ Queries the episode actions of the user

    device excludes the actions uploaded by the device itself; limit keeps
    only the latest actions """

    def validate(self):
        validate_username(self.username)

        if self.device is not None:
            validate_device_name(self.device)

        if self.podcast is not None and not isinstance(self.podcast, str):
            raise ValidationError("podcast must be a URL", code="invalid-podcast")

        if self.limit is not None and (
            isinstance(self.limit, bool)
            or not isinstance(self.limit, int)
            or self.limit < 1
        ):
            raise ValidationError(
                "limit must be a positive number", code="invalid-limit"
            )

        return self._replace(
            since=validate_since(self.since), aggregated=bool(self.aggregated)
        )


class GetEpisodeUpdates(
    namedtuple("GetEpisodeUpdates", "username device since", defaults=(None,))
):
    """ Queries the latest action of each episode changed on other devices """

    def validate(self):
        validate_username(self.username)
        validate_device_name(self.device)
        return self._replace(since=validate_since(self.since))
