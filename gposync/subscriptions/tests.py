from datetime import datetime, timedelta, timezone

from django.core.exceptions import ValidationError
from django.test import TestCase

from gposync.core.exceptions import UnknownDevice
from gposync.podcasts.models import Podcast
from gposync.subscriptions.commands import (
    ReplaceSubscriptions,
    ChangeSubscriptions,
    GetSubscriptionChanges,
    GetUserSubscriptions,
)
from gposync.subscriptions.signals import subscription_changed
from gposync.subscriptions.sync import (
    replace_subscriptions,
    change_subscriptions,
    get_subscription_changes,
    get_user_subscriptions,
)
from gposync.test import create_user
from gposync.users.models import Device


T1 = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2020, 1, 2, 12, 0, tzinfo=timezone.utc)

A = "http://example.com/a.rss"
B = "http://example.com/b.rss"
C = "http://example.com/c.rss"
D = "http://example.com/d.rss"
E = "http://example.com/e.rss"


def urls(podcasts):
    return sorted(podcast.url for podcast in podcasts)


class ReplaceSubscriptionsTests(TestCase):
    """ Test replacing the complete set of subscriptions """

    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username

    def test_scenario(self):
        replace_subscriptions(
            ReplaceSubscriptions(self.username, "dev1", [A, B], T1)
        )
        subscriptions = get_user_subscriptions(GetUserSubscriptions(self.username, None))
        self.assertEqual(subscriptions, [A, B])

    def test_device_is_created(self):
        replace_subscriptions(ReplaceSubscriptions(self.username, "dev1", [A], T1))
        self.assertTrue(Device.objects.filter(user=self.user, name="dev1").exists())

    def test_idempotence(self):
        cmd = ReplaceSubscriptions(self.username, "dev1", [A, B], T1)
        replace_subscriptions(cmd)
        before = {p.url: p.modified for p in Podcast.objects.filter(user=self.user)}

        replace_subscriptions(cmd._replace(timestamp=T2))

        for podcast in Podcast.objects.filter(user=self.user):
            self.assertEqual(podcast.updated, T1)
            self.assertEqual(podcast.modified, before[podcast.url])

        changes = get_subscription_changes(
            GetSubscriptionChanges(self.username, "dev1", T1)
        )
        self.assertEqual(changes.added, [])
        self.assertEqual(changes.removed, [])

    def test_diff(self):
        replace_subscriptions(
            ReplaceSubscriptions(self.username, "dev1", [A, B, C], T1)
        )
        replace_subscriptions(
            ReplaceSubscriptions(self.username, "dev1", [A, D, E], T2)
        )

        for since in (T1, T1 + timedelta(hours=1), T2 - timedelta(seconds=1)):
            changes = get_subscription_changes(
                GetSubscriptionChanges(self.username, "dev1", since)
            )
            self.assertEqual(urls(changes.added), [D, E])
            self.assertEqual(urls(changes.removed), [B, C])

        # other devices see the same changes
        replace_subscriptions(ReplaceSubscriptions(self.username, "dev2", [A, D, E], T2))
        changes = get_subscription_changes(
            GetSubscriptionChanges(self.username, "dev2", T1)
        )
        self.assertEqual(urls(changes.added), [D, E])
        self.assertEqual(urls(changes.removed), [B, C])

    def test_sanitized_urls(self):
        update_urls = replace_subscriptions(
            ReplaceSubscriptions(
                self.username, "dev1", ["Example.com/a.rss", "ftp://example.com/x"], T1
            )
        )
        self.assertEqual(
            update_urls,
            [("Example.com/a.rss", A), ("ftp://example.com/x", "")],
        )
        subscriptions = get_user_subscriptions(GetUserSubscriptions(self.username, None))
        self.assertEqual(subscriptions, [A])

    def test_invalid_device(self):
        cmd = ReplaceSubscriptions(self.username, "dev 1", [A], T1)
        self.assertRaises(ValidationError, replace_subscriptions, cmd)
        self.assertFalse(Podcast.objects.filter(user=self.user).exists())


class ChangeSubscriptionsTests(TestCase):
    """ Test adding and removing subscriptions """

    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username

    def test_add_remove(self):
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A, B], [], T1))
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [C], [A], T2))

        subscriptions = get_user_subscriptions(GetUserSubscriptions(self.username, None))
        self.assertEqual(subscriptions, [B, C])

        changes = get_subscription_changes(
            GetSubscriptionChanges(self.username, "dev1", T1)
        )
        self.assertEqual(urls(changes.added), [C])
        self.assertEqual(urls(changes.removed), [A])

    def test_disjointness(self):
        cmd = ChangeSubscriptions(self.username, "dev1", [A, B], [B], T1)
        self.assertRaises(ValidationError, change_subscriptions, cmd)

        # nothing has been written
        self.assertFalse(Podcast.objects.filter(user=self.user).exists())
        self.assertFalse(Device.objects.filter(user=self.user).exists())

    def test_removal_of_same_sanitized_url_is_ignored(self):
        update_urls = change_subscriptions(
            ChangeSubscriptions(self.username, "dev1", [A], ["Example.com/a.rss"], T1)
        )
        self.assertEqual(update_urls, [("Example.com/a.rss", A)])

        subscriptions = get_user_subscriptions(GetUserSubscriptions(self.username, None))
        self.assertEqual(subscriptions, [A])

    def test_remove_unknown(self):
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [], [A], T1))
        self.assertFalse(Podcast.objects.filter(user=self.user).exists())

    def test_signals(self):
        received = []

        def handler(sender, instance, user, device, subscribed, **kwargs):
            received.append((instance.url, device.name, subscribed))

        subscription_changed.connect(handler)
        self.addCleanup(subscription_changed.disconnect, handler)

        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A], [], T1))
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A], [], T1))
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [], [A], T2))

        self.assertEqual(received, [(A, "dev1", True), (A, "dev1", False)])


class SubscriptionChangesTests(TestCase):
    """ Test querying the changes of subscriptions """

    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username

    def test_unknown_device(self):
        query = GetSubscriptionChanges(self.username, "dev1", T1)
        self.assertRaises(UnknownDevice, get_subscription_changes, query)

    def test_without_since(self):
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A, B], [], T1))
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [], [B], T2))

        changes = get_subscription_changes(
            GetSubscriptionChanges(self.username, "dev1", None)
        )
        self.assertEqual(urls(changes.added), [A])
        self.assertEqual(changes.removed, [])
        self.assertIsNotNone(changes.timestamp)

    def test_since_as_number(self):
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A], [], T2))

        since = int(T1.timestamp())
        changes = get_subscription_changes(
            GetSubscriptionChanges(self.username, "dev1", since)
        )
        self.assertEqual(urls(changes.added), [A])

    def test_invalid_since(self):
        query = GetSubscriptionChanges(self.username, "dev1", "yesterday-ish")
        self.assertRaises(ValidationError, get_subscription_changes, query)

    def test_user_subscriptions_device(self):
        query = GetUserSubscriptions(self.username, None, "dev1")
        self.assertRaises(UnknownDevice, get_user_subscriptions, query)

        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A], [], T1))
        self.assertEqual(get_user_subscriptions(query), [A])

    def test_user_subscriptions_since(self):
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A], [], T1))
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [B], [], T2))

        query = GetUserSubscriptions(self.username, T1)
        self.assertEqual(get_user_subscriptions(query), [B])

    def test_user_subscriptions_order(self):
        change_subscriptions(ChangeSubscriptions(self.username, "dev1", [A, B], [], T1))
        Podcast.objects.filter(user=self.user, url=B).update(title="Alpha")
        Podcast.objects.filter(user=self.user, url=A).update(title="Beta")

        query = GetUserSubscriptions(self.username, None)
        self.assertEqual(get_user_subscriptions(query), [B, A])
