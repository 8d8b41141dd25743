import re

from django.core.validators import RegexValidator
from django.db import models
from django.conf import settings

from gposync.core.models import UpdateInfoModel

import logging

logger = logging.getLogger(__name__)


RE_DEVICE_NAME = re.compile(r"^[\w.-]+$")


class DeviceNameValidator(RegexValidator):
    """ Validates that the device name conforms to the given regex """

    regex = RE_DEVICE_NAME
    message = "Invalid Device ID"
    code = "invalid-device-name"


class DeviceQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)


class Device(UpdateInfoModel):
    """ A client application of a user, identified by its name """

    DESKTOP = "desktop"
    LAPTOP = "laptop"
    MOBILE = "mobile"
    SERVER = "server"
    OTHER = "other"

    TYPES = (
        (DESKTOP, "Desktop"),
        (LAPTOP, "Laptop"),
        (MOBILE, "Cell phone"),
        (SERVER, "Server"),
        (OTHER, "Other"),
    )

    # the user to which the device belongs
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)

    # User-assigned ID; must be unique for the user
    name = models.CharField(max_length=64, validators=[DeviceNameValidator()])

    # User-assigned display name
    caption = models.CharField(max_length=100, blank=True, default="")

    # one of several predefined types
    type = models.CharField(
        max_length=max(len(k) for k, v in TYPES), choices=TYPES, default=OTHER
    )

    objects = DeviceQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "name"], name="users_device_unique_name"
            )
        ]

    def __str__(self):
        return "{caption} ({name})".format(caption=self.caption, name=self.name)
