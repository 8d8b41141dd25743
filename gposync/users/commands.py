from collections import namedtuple

from django.core.exceptions import ValidationError

from gposync.users.models import Device, DeviceNameValidator


def validate_username(username):
    if not username:
        raise ValidationError("username must not be empty", code="invalid-username")


def validate_device_name(name):
    if not name:
        raise ValidationError("device must not be empty", code="invalid-device-name")

    DeviceNameValidator()(name)

    max_length = Device._meta.get_field("name").max_length
    if len(name) > max_length:
        raise ValidationError(
            "device must not be longer than %d characters" % max_length,
            code="invalid-device-name",
        )


DEVICE_TYPES = [t for t, name in Device.TYPES]


class UpdateDevice(
    namedtuple("UpdateDevice", "username device caption type", defaults=(None, None))
):
    """ Creates a device or changes its caption and type

    Attributes that are None are left unchanged """

    def validate(self):
        validate_username(self.username)
        validate_device_name(self.device)

        if self.type is not None and self.type not in DEVICE_TYPES:
            raise ValidationError(
                "invalid device type %(type)s",
                code="invalid-device-type",
                params={"type": self.type},
            )

        if self.caption is not None:
            max_length = Device._meta.get_field("caption").max_length
            if len(self.caption) > max_length:
                raise ValidationError("caption is too long", code="invalid-caption")

        return self
