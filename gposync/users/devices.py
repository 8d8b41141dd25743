""" The devices of a user

Write operations create devices on their first reference by name; reads and
settings only look them up. """

from collections import namedtuple

from gposync.core.exceptions import UnknownDevice
from gposync.core.transaction import repository_transaction
from gposync.podcasts.models import Podcast
from gposync.users.accounts import get_user
from gposync.users.commands import validate_device_name
from gposync.users.models import Device

import logging

logger = logging.getLogger(__name__)


DeviceInfo = namedtuple("DeviceInfo", "name caption type subscriptions")


def get_device(user, name, create=True):
    """ Returns the device of user with the given name

    The device is created if it does not exist yet, unless create is False in
    which case UnknownDevice is raised. Runs in the transaction of the caller. """
    validate_device_name(name)

    if not create:
        try:
            return Device.objects.get(user=user, name=name)
        except Device.DoesNotExist as ex:
            raise UnknownDevice(name) from ex

    device, created = Device.objects.get_or_create(user=user, name=name)
    if created:
        logger.info(
            "created device {device} for {user}".format(device=name, user=user)
        )
    return device


def update_device(cmd):
    """ Creates the device or updates its caption and type """
    cmd = cmd.validate()

    with repository_transaction():
        user = get_user(cmd.username)
        device = get_device(user, cmd.device)

        update_fields = []
        if cmd.caption is not None and cmd.caption != device.caption:
            device.caption = cmd.caption
            update_fields.append("caption")

        if cmd.type is not None and cmd.type != device.type:
            device.type = cmd.type
            update_fields.append("type")

        if update_fields:
            device.save(update_fields=update_fields + ["modified"])
            logger.info(
                "updated {fields} of device {device} of {user}".format(
                    fields=", ".join(update_fields), device=device.name, user=user
                )
            )

    return device


def list_devices(username):
    """ Returns a DeviceInfo for each device of the user

    All devices share the subscriptions of the user, so each reports the
    same number of subscriptions """
    with repository_transaction():
        user = get_user(username)
        subscriptions = Podcast.objects.for_user(user).subscribed().count()
        devices = Device.objects.for_user(user).order_by("name")

        return [
            DeviceInfo(
                name=device.name,
                caption=device.caption,
                type=device.type,
                subscriptions=subscriptions,
            )
            for device in devices
        ]


def delete_device(username, name):
    """ Deletes the device and its settings

    Episode actions that were uploaded from the device are kept, without a
    device """
    with repository_transaction():
        user = get_user(username)
        device = get_device(user, name, create=False)
        device.delete()

    logger.info("deleted device {device} of {user}".format(device=name, user=user))
