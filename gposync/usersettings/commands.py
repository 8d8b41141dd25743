from collections import namedtuple

from django.core.exceptions import ValidationError

from gposync.usersettings import models as m
from gposync.usersettings.scopes import SCOPE_NAMES
from gposync.users.commands import validate_username, validate_device_name


# the arguments that identify an object of each scope
SCOPE_ARGS = {
    m.ACCOUNT: (),
    m.DEVICE: ("device",),
    m.PODCAST: ("podcast",),
    m.EPISODE: ("podcast", "episode"),
}


def validate_scope(scope, device, podcast, episode):
    if scope not in SCOPE_NAMES:
        raise ValidationError(
            "invalid scope %(scope)s", code="invalid-scope", params={"scope": scope}
        )

    given = {"device": device, "podcast": podcast, "episode": episode}
    for arg in SCOPE_ARGS[scope]:
        if not given[arg]:
            raise ValidationError(
                "%(arg)s is required for scope %(scope)s",
                code="missing-scope-argument",
                params={"arg": arg, "scope": scope},
            )

    if scope == m.DEVICE:
        validate_device_name(device)


class GetSettings(
    namedtuple(
        "GetSettings",
        "username scope device podcast episode",
        defaults=(None, None, None),
    )
):
    def validate(self):
        validate_username(self.username)
        validate_scope(self.scope, self.device, self.podcast, self.episode)
        return self


class SaveSettings(
    namedtuple(
        "SaveSettings",
        "username scope device podcast episode set remove",
        defaults=(None, None, None, None, None),
    )
):
    """ Sets and removes settings of one scope

    An empty value in set removes the setting as well """

    def validate(self):
        validate_username(self.username)
        validate_scope(self.scope, self.device, self.podcast, self.episode)

        set_ = dict(self.set or {})
        remove = list(self.remove or [])

        max_length = m.UserSetting._meta.get_field("key").max_length
        for key in list(set_) + remove:
            if not isinstance(key, str) or not key or len(key) > max_length:
                raise ValidationError(
                    "invalid setting name %(key)s",
                    code="invalid-key",
                    params={"key": key},
                )

        for key, value in set_.items():
            if not isinstance(value, str):
                raise ValidationError(
                    "value of %(key)s must be a string",
                    code="invalid-value",
                    params={"key": key},
                )

        conflicts = set(set_) & set(remove)
        if conflicts:
            raise ValidationError(
                "can not set and remove %(keys)s at the same time",
                code="conflicting-keys",
                params={"keys": ", ".join(sorted(conflicts))},
            )

        return self._replace(set=set_, remove=remove)
