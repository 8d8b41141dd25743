from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from gposync.core.exceptions import UnknownDevice, UnknownPodcast, UnknownEpisode
from gposync.podcasts.models import Podcast, Episode
from gposync.test import create_user
from gposync.users.models import Device
from gposync.usersettings.commands import GetSettings, SaveSettings
from gposync.usersettings.models import UserSetting, ACCOUNT, PODCAST
from gposync.usersettings.resolver import (
    resolve_scope,
    get_settings,
    save_settings,
    set_favorite,
)
from gposync.usersettings.scopes import (
    AccountScope,
    DeviceScope,
    PodcastScope,
    EpisodeScope,
)
from gposync.usersettings.settings import FAV_FLAG, TRUE_VALUE


class TestSettings(TestCase):
    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username
        self.podcast_url = "http://example.com/podcast.rss"
        self.episode_url = "http://example.com/podcast/episode-1.mp3"
        self.uid = "client-uid"
        self.podcast = Podcast.objects.get_or_create_for_url(
            self.user, self.podcast_url
        )
        self.episode = Episode.objects.get_or_create_for_url(
            self.podcast, self.episode_url, defaults={"guid": "episode-1"}
        )
        self.device = Device.objects.create(user=self.user, name=self.uid)

    def test_user_settings(self):
        """ Create, update and verify settings for the user """
        self._do_test_scope("account")

    def test_podcast_settings(self):
        self._do_test_scope("podcast", podcast=self.podcast_url)

    def test_episode_settings(self):
        self._do_test_scope(
            "episode", podcast=self.podcast_url, episode=self.episode_url
        )

    def test_device_settings(self):
        self._do_test_scope("device", device=self.uid)

    def _do_test_scope(self, scope, **kwargs):
        # set settings
        result = save_settings(
            SaveSettings(self.username, scope, set={"a": "b", "c": "d"}, **kwargs)
        )
        self.assertEqual(result, {"a": "b", "c": "d"})

        # update settings
        save_settings(
            SaveSettings(self.username, scope, set={"a": "x"}, remove=["c"], **kwargs)
        )

        # get settings
        settings = get_settings(GetSettings(self.username, scope, **kwargs))
        self.assertEqual(settings, {"a": "x"})

    def test_scopes_are_separate(self):
        save_settings(SaveSettings(self.username, "account", set={"k": "account"}))
        save_settings(
            SaveSettings(
                self.username, "podcast", podcast=self.podcast_url, set={"k": "podcast"}
            )
        )
        save_settings(
            SaveSettings(
                self.username,
                "episode",
                podcast=self.podcast_url,
                episode=self.episode_url,
                set={"k": "episode"},
            )
        )

        self.assertEqual(
            get_settings(GetSettings(self.username, "account")), {"k": "account"}
        )
        self.assertEqual(
            get_settings(GetSettings(self.username, "podcast", podcast=self.podcast_url)),
            {"k": "podcast"},
        )
        self.assertEqual(
            get_settings(GetSettings(self.username, "device", device=self.uid)), {}
        )
        self.assertEqual(UserSetting.objects.filter(user=self.user).count(), 3)

    def test_empty_value_deletes(self):
        save_settings(SaveSettings(self.username, "account", set={"k": "v"}))
        result = save_settings(SaveSettings(self.username, "account", set={"k": ""}))
        self.assertEqual(result, {})
        self.assertFalse(UserSetting.objects.filter(user=self.user).exists())

    def test_favorite_flag(self):
        """ a favorite is stored as a flag of the episode; unset means false """
        query = GetSettings(
            self.username, "episode", podcast=self.podcast_url, episode=self.episode_url
        )

        set_favorite(self.username, self.podcast_url, self.episode_url)
        self.assertEqual(get_settings(query), {FAV_FLAG: TRUE_VALUE})

        set_favorite(self.username, self.podcast_url, self.episode_url, favorite=False)
        self.assertEqual(get_settings(query), {})

    def test_unknown_device_is_not_created(self):
        """ settings never create devices, unlike uploads """
        query = GetSettings(self.username, "device", device="other-device")
        self.assertRaises(UnknownDevice, get_settings, query)

        cmd = SaveSettings(self.username, "device", device="other-device", set={"a": "b"})
        self.assertRaises(UnknownDevice, save_settings, cmd)
        self.assertFalse(Device.objects.filter(name="other-device").exists())

    def test_unknown_podcast_and_episode(self):
        query = GetSettings(self.username, "podcast", podcast="http://example.com/x.rss")
        self.assertRaises(UnknownPodcast, get_settings, query)

        query = GetSettings(
            self.username,
            "episode",
            podcast=self.podcast_url,
            episode="http://example.com/x.mp3",
        )
        self.assertRaises(UnknownEpisode, get_settings, query)

    def test_invalid_input(self):
        self.assertRaises(
            ValidationError, get_settings, GetSettings(self.username, "planet")
        )
        self.assertRaises(
            ValidationError, get_settings, GetSettings(self.username, "podcast")
        )
        self.assertRaises(
            ValidationError,
            save_settings,
            SaveSettings(self.username, "account", set={"a": 1}),
        )
        self.assertRaises(
            ValidationError,
            save_settings,
            SaveSettings(self.username, "account", set={"a": "b"}, remove=["a"]),
        )

    def test_resolve_scope(self):
        self.assertEqual(resolve_scope(self.user, "account"), AccountScope())
        self.assertEqual(
            resolve_scope(self.user, "device", device=self.uid),
            DeviceScope(self.device),
        )
        self.assertEqual(
            resolve_scope(self.user, "podcast", podcast=self.podcast_url),
            PodcastScope(self.podcast),
        )
        # episodes can also be referenced by their GUID
        self.assertEqual(
            resolve_scope(
                self.user, "episode", podcast=self.podcast_url, episode="episode-1"
            ),
            EpisodeScope(self.podcast, self.episode),
        )

    def test_scope_columns_are_checked(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            UserSetting.objects.create(
                user=self.user, scope=ACCOUNT, podcast=self.podcast, key="a", value="b"
            )

    def test_one_row_per_key(self):
        UserSetting.objects.create(
            user=self.user, scope=PODCAST, podcast=self.podcast, key="a", value="b"
        )
        with self.assertRaises(IntegrityError), transaction.atomic():
            UserSetting.objects.create(
                user=self.user, scope=PODCAST, podcast=self.podcast, key="a", value="c"
            )
