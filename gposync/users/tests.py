import json
import os
import tempfile
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from gposync.core.exceptions import UnknownUser, UnknownDevice
from gposync.history.actions import add_episode_actions
from gposync.history.commands import AddEpisodeActions, EpisodeActionData
from gposync.history.models import EpisodeAction
from gposync.podcasts.models import Podcast, Episode
from gposync.subscriptions.commands import (
    ReplaceSubscriptions,
    ChangeSubscriptions,
    GetSubscriptionChanges,
)
from gposync.subscriptions.sync import (
    replace_subscriptions,
    change_subscriptions,
    get_subscription_changes,
)
from gposync.test import create_user
from gposync.users import accounts, devices
from gposync.users.commands import UpdateDevice
from gposync.users.maintenance import export_all, import_all
from gposync.users.models import Device
from gposync.usersettings.commands import GetSettings, SaveSettings
from gposync.usersettings.models import UserSetting, ACCOUNT, DEVICE
from gposync.usersettings.models import EPISODE as EPISODE_SCOPE
from gposync.usersettings.resolver import get_settings, save_settings, set_favorite


PODCAST = "http://example.com/podcast.rss"
EPISODE = "http://example.com/episode.mp3"


class AccountTests(TestCase):
    def test_create_user(self):
        user = accounts.create_user("alice", "secret", "alice@example.com")
        self.assertTrue(user.is_active)
        self.assertTrue(user.check_password("secret"))
        self.assertEqual(accounts.get_user("alice").pk, user.pk)

    def test_username_taken(self):
        accounts.create_user("alice", "secret")
        with self.assertRaises(ValidationError):
            accounts.create_user("alice", "other")

    def test_get_user(self):
        self.assertRaises(ValidationError, accounts.get_user, "")
        self.assertRaises(UnknownUser, accounts.get_user, "nobody")

    def test_lock_user(self):
        user, pwd = create_user()
        accounts.lock_user(user.username)

        user.refresh_from_db()
        self.assertFalse(user.is_active)
        self.assertFalse(user.has_usable_password())

    def test_change_password(self):
        user, pwd = create_user()
        accounts.change_password(user.username, "new-password")

        user.refresh_from_db()
        self.assertTrue(user.check_password("new-password"))
        self.assertRaises(
            ValidationError, accounts.change_password, user.username, ""
        )


class DeviceTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()

    def test_get_device_creates(self):
        d1 = devices.get_device(self.user, "phone")
        d2 = devices.get_device(self.user, "phone")
        self.assertEqual(d1.pk, d2.pk)
        self.assertEqual(d1.type, Device.OTHER)

    def test_get_device_strict(self):
        with self.assertRaises(UnknownDevice):
            devices.get_device(self.user, "phone", create=False)
        self.assertFalse(Device.objects.filter(user=self.user).exists())

    def test_invalid_name(self):
        with self.assertRaises(ValidationError):
            devices.get_device(self.user, "my phone")

    def test_update_device(self):
        cmd = UpdateDevice(self.user.username, "phone", "My Phone", Device.MOBILE)
        device = devices.update_device(cmd)
        self.assertEqual(device.caption, "My Phone")
        self.assertEqual(device.type, Device.MOBILE)

        # attributes that are not given stay unchanged
        devices.update_device(UpdateDevice(self.user.username, "phone", "Phone"))
        device.refresh_from_db()
        self.assertEqual(device.caption, "Phone")
        self.assertEqual(device.type, Device.MOBILE)

    def test_update_device_invalid_type(self):
        cmd = UpdateDevice(self.user.username, "phone", type="toaster")
        self.assertRaises(ValidationError, devices.update_device, cmd)
        self.assertFalse(Device.objects.filter(user=self.user).exists())

    def test_list_devices(self):
        devices.update_device(UpdateDevice(self.user.username, "phone", "Phone"))
        devices.get_device(self.user, "laptop")
        podcast = Podcast.objects.get_or_create_for_url(
            self.user, "http://example.com/podcast.rss"
        )
        podcast.subscribed = True
        podcast.save()

        infos = devices.list_devices(self.user.username)
        self.assertEqual([info.name for info in infos], ["laptop", "phone"])
        self.assertEqual(infos[1].caption, "Phone")
        self.assertTrue(all(info.subscriptions == 1 for info in infos))

    def test_delete_device(self):
        device = devices.get_device(self.user, "phone")
        podcast = Podcast.objects.get_or_create_for_url(
            self.user, "http://example.com/podcast.rss"
        )
        episode = Episode.objects.get_or_create_for_url(
            podcast, "http://example.com/episode.mp3"
        )
        action = EpisodeAction.objects.create(
            user=self.user,
            podcast=podcast,
            episode=episode,
            device=device,
            action=EpisodeAction.DOWNLOAD,
            timestamp=podcast.created,
        )
        UserSetting.objects.create(
            user=self.user, scope=DEVICE, device=device, key="a", value="b"
        )

        devices.delete_device(self.user.username, "phone")

        self.assertFalse(Device.objects.filter(pk=device.pk).exists())
        self.assertFalse(UserSetting.objects.filter(user=self.user).exists())
        action.refresh_from_db()
        self.assertIsNone(action.device)

        self.assertRaises(
            UnknownDevice, devices.delete_device, self.user.username, "phone"
        )


class CommandTests(TestCase):
    def test_add_and_lock_user(self):
        out = StringIO()
        call_command("add-user", "bob", password="secret", stdout=out)
        self.assertIn("bob", out.getvalue())

        User = get_user_model()
        self.assertTrue(User.objects.get(username="bob").check_password("secret"))

        call_command("lock-user", "bob", stdout=out)
        self.assertFalse(User.objects.get(username="bob").is_active)

    def test_change_password(self):
        user, pwd = create_user()
        call_command(
            "change-password", user.username, password="other", stdout=StringIO()
        )
        user.refresh_from_db()
        self.assertTrue(user.check_password("other"))

    def test_unknown_user(self):
        with self.assertRaises(CommandError):
            call_command("lock-user", "nobody", stdout=StringIO())

    def test_list_and_delete_devices(self):
        user, pwd = create_user()
        devices.get_device(user, "phone")

        out = StringIO()
        call_command("list-devices", user.username, stdout=out)
        self.assertIn("phone", out.getvalue())

        call_command("delete-device", user.username, "phone", stdout=StringIO())
        self.assertFalse(Device.objects.filter(user=user).exists())

        with self.assertRaises(CommandError):
            call_command("delete-device", user.username, "phone", stdout=StringIO())


class DeleteUserTests(TestCase):
    def test_delete_cascades(self):
        """ deleting a user removes all of its data """
        user, pwd = create_user()
        other, pwd = create_user()

        for owner in (user, other):
            device = devices.get_device(owner, "phone")
            podcast = Podcast.objects.get_or_create_for_url(
                owner, "http://example.com/podcast.rss"
            )
            episode = Episode.objects.get_or_create_for_url(
                podcast, "http://example.com/episode.mp3"
            )
            EpisodeAction.objects.create(
                user=owner,
                podcast=podcast,
                episode=episode,
                device=device,
                action=EpisodeAction.DOWNLOAD,
                timestamp=podcast.created,
            )
            UserSetting.objects.create(
                user=owner, scope=DEVICE, device=device, key="a", value="b"
            )

        user.delete()

        self.assertFalse(Device.objects.filter(user_id=user.pk).exists())
        self.assertFalse(Podcast.objects.filter(user_id=user.pk).exists())
        self.assertFalse(Episode.objects.filter(podcast__user_id=user.pk).exists())
        self.assertFalse(EpisodeAction.objects.filter(user_id=user.pk).exists())
        self.assertFalse(UserSetting.objects.filter(user_id=user.pk).exists())

        # the data of other users is kept
        self.assertEqual(Device.objects.filter(user=other).count(), 1)
        self.assertEqual(EpisodeAction.objects.filter(user=other).count(), 1)
        self.assertEqual(UserSetting.objects.filter(user=other).count(), 1)


class ListUsersTests(TestCase):
    def setUp(self):
        accounts.create_user("bob", "secret", "bob@example.com")
        accounts.create_user("alice", "secret")
        accounts.lock_user("bob")

    def test_list_users(self):
        users = accounts.list_users()
        self.assertEqual([u.username for u in users], ["alice", "bob"])

        users = accounts.list_users(active_only=True)
        self.assertEqual([u.username for u in users], ["alice"])

    def test_command(self):
        out = StringIO()
        call_command("list-users", stdout=out)
        lines = out.getvalue().splitlines()
        self.assertEqual(lines, ["alice\t\t", "bob\tbob@example.com\tLOCKED"])

        out = StringIO()
        call_command("list-users", active_only=True, stdout=out)
        self.assertEqual(out.getvalue().splitlines(), ["alice\t\t"])


class ExportImportTests(TestCase):
    def setUp(self):
        self.user = accounts.create_user("alice", "secret", "alice@example.com")

        devices.update_device(
            UpdateDevice("alice", "phone", "My Phone", Device.MOBILE)
        )
        replace_subscriptions(
            ReplaceSubscriptions(
                "alice", "phone", [PODCAST, "http://example.com/other.rss"]
            )
        )
        change_subscriptions(
            ChangeSubscriptions(
                "alice", "phone", remove=["http://example.com/other.rss"]
            )
        )
        add_episode_actions(
            AddEpisodeActions(
                "alice",
                [
                    EpisodeActionData(
                        PODCAST,
                        EPISODE,
                        "play",
                        "phone",
                        "2020-01-01T12:00:00",
                        position=60,
                        guid="ep-1",
                    ),
                    EpisodeActionData(PODCAST, EPISODE, "delete", None, "2020-01-02"),
                ],
            )
        )
        save_settings(SaveSettings("alice", ACCOUNT, set={"theme": "dark"}))
        save_settings(SaveSettings("alice", DEVICE, device="phone", set={"a": "b"}))
        set_favorite("alice", PODCAST, EPISODE)

    def test_export(self):
        data = export_all()
        self.assertEqual(len(data), 1)

        record = data[0]
        self.assertEqual(record["user"]["username"], "alice")
        self.assertEqual(
            record["devices"],
            [{"name": "phone", "caption": "My Phone", "type": Device.MOBILE}],
        )
        self.assertEqual(
            [(p["url"], p["subscribed"]) for p in record["podcasts"]],
            [("http://example.com/other.rss", False), (PODCAST, True)],
        )
        self.assertEqual(
            [(a["action"], a["device"]) for a in record["actions"]],
            [("play", "phone"), ("delete", None)],
        )
        self.assertEqual(
            sorted((s["scope"], s["key"]) for s in record["settings"]),
            [(ACCOUNT, "theme"), (DEVICE, "a"), (EPISODE_SCOPE, "is_favorite")],
        )

    def test_export_and_import(self):
        out = StringIO()
        call_command("export", stdout=out)
        data = json.loads(out.getvalue())

        self.user.delete()
        self.assertEqual(export_all(), [])

        with tempfile.TemporaryDirectory() as tmpdir:
            filename = os.path.join(tmpdir, "dump.json")
            with open(filename, "w", encoding="utf-8") as f:
                json.dump(data, f)

            out = StringIO()
            call_command("import", filename, stdout=out)
            self.assertIn("Imported 1 users", out.getvalue())

        self.assertEqual(export_all(), data)

        user = accounts.get_user("alice")
        self.assertTrue(user.check_password("secret"))

        changes = get_subscription_changes(GetSubscriptionChanges("alice", "phone", 1))
        self.assertEqual([p.url for p in changes.added], [PODCAST])
        self.assertEqual(
            [p.url for p in changes.removed], ["http://example.com/other.rss"]
        )
        self.assertEqual(
            get_settings(GetSettings("alice", DEVICE, device="phone")), {"a": "b"}
        )

    def test_import_is_atomic(self):
        data = export_all()
        self.user.delete()

        broken = dict(data[0], user=dict(data[0]["user"], username="bob"))
        broken["actions"] = broken["actions"] + [
            dict(broken["actions"][0], episode="http://example.com/unknown.mp3")
        ]

        with self.assertRaises(ValidationError):
            import_all(data + [broken])

        self.assertEqual(export_all(), [])

    def test_existing_user(self):
        data = export_all()

        with self.assertRaises(ValidationError):
            import_all(data)

        with self.assertRaises(CommandError):
            with tempfile.TemporaryDirectory() as tmpdir:
                filename = os.path.join(tmpdir, "dump.json")
                with open(filename, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                call_command("import", filename, stdout=StringIO())

    def test_unreadable_dump(self):
        with self.assertRaises(CommandError):
            call_command("import", "/nonexistent/dump.json", stdout=StringIO())
