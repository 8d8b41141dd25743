from collections import namedtuple

from django.core.exceptions import ValidationError

from gposync.core.commands import validate_urls, validate_timestamp, validate_since
from gposync.users.commands import validate_username, validate_device_name
from gposync.utils import intersect

import logging

logger = logging.getLogger(__name__)


class ReplaceSubscriptions(
    namedtuple(
        "ReplaceSubscriptions", "username device urls timestamp", defaults=(None,)
    )
):
    """ Replaces the subscriptions of the user with urls """

    def validate(self):
        """ Raises ValidationError for bad input

        Returns the command with the timestamp parsed """
        validate_username(self.username)
        validate_device_name(self.device)
        validate_urls("urls", self.urls)
        return self._replace(
            urls=list(self.urls), timestamp=validate_timestamp(self.timestamp)
        )


class ChangeSubscriptions(
    namedtuple(
        "ChangeSubscriptions",
        "username device add remove timestamp",
        defaults=((), (), None),
    )
):
    """ Subscribes to the podcasts in add and unsubscribes from remove """

    def validate(self):
        validate_username(self.username)
        validate_device_name(self.device)
        validate_urls("add", self.add)
        validate_urls("remove", self.remove)

        conflicts = intersect(self.add, self.remove)
        if conflicts:
            msg = "can not add and remove '{}' at the same time".format(
                ", ".join(sorted(conflicts))
            )
            logger.warning(msg)
            raise ValidationError(msg, code="conflicting-urls")

        return self._replace(
            add=list(self.add),
            remove=list(self.remove),
            timestamp=validate_timestamp(self.timestamp),
        )


class GetSubscriptionChanges(
    namedtuple("GetSubscriptionChanges", "username device since", defaults=(None,))
):
    """ Queries the changes of the subscriptions since a point in time """

    def validate(self):
        validate_username(self.username)
        validate_device_name(self.device)
        return self._replace(since=validate_since(self.since))


class GetUserSubscriptions(
    namedtuple(
        "GetUserSubscriptions", "username since device", defaults=(None, None)
    )
):
    """ Queries the subscribed URLs of the user """

    def validate(self):
        validate_username(self.username)
        if self.device is not None:
            validate_device_name(self.device)
        return self._replace(since=validate_since(self.since))
