""" The scopes to which settings can belong

A scope is one of AccountScope, DeviceScope, PodcastScope and EpisodeScope;
each carries only the objects that identify it. Only when rows are read or
written is a scope flattened into the nullable columns of UserSetting.
"""

from collections import namedtuple

from gposync.usersettings import models as m


class _Scope:
    __slots__ = ()

    name = None

    def fields(self):
        return {"device": None, "podcast": None, "episode": None}

    def as_filter(self):
        """ Column values identifying the scope in UserSetting """
        columns = self.fields()
        columns["scope"] = self.name
        return columns


class AccountScope(_Scope, namedtuple("AccountScope", "")):
    name = m.ACCOUNT


class DeviceScope(_Scope, namedtuple("DeviceScope", "device")):
    name = m.DEVICE

    def fields(self):
        fields = super().fields()
        fields["device"] = self.device
        return fields


class PodcastScope(_Scope, namedtuple("PodcastScope", "podcast")):
    name = m.PODCAST

    def fields(self):
        fields = super().fields()
        fields["podcast"] = self.podcast
        return fields


class EpisodeScope(_Scope, namedtuple("EpisodeScope", "podcast episode")):
    name = m.EPISODE

    def fields(self):
        fields = super().fields()
        fields["podcast"] = self.podcast
        fields["episode"] = self.episode
        return fields


SCOPE_NAMES = [name for name, title in m.SCOPES]
