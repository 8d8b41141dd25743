from datetime import datetime, timedelta, timezone

from django.core.exceptions import ValidationError
from django.test import TestCase

from gposync.core.exceptions import UnknownPodcast, UnknownDevice
from gposync.history.actions import (
    add_episode_actions,
    list_episode_actions,
    get_episode_updates,
    get_last_action,
    get_favorites,
)
from gposync.history.commands import (
    EpisodeActionData,
    AddEpisodeActions,
    ListEpisodeActions,
    GetEpisodeUpdates,
)
from gposync.history.models import EpisodeAction
from gposync.podcasts.models import Podcast, Episode
from gposync.test import create_user
from gposync.users.models import Device
from gposync.usersettings.resolver import set_favorite


T1 = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2020, 1, 2, 12, 0, tzinfo=timezone.utc)
T3 = datetime(2020, 1, 3, 12, 0, tzinfo=timezone.utc)

PODCAST = "http://example.com/podcast.rss"
EPISODE1 = "http://example.com/episode-1.mp3"
EPISODE2 = "http://example.com/episode-2.mp3"


class EpisodeActionValidationTests(TestCase):
    """ Test the validation of uploaded episode actions """

    def setUp(self):
        self.user, pwd = create_user()

    def test_position_only_for_play(self):
        """ a download action must not carry a position """
        action = EpisodeActionData(PODCAST, EPISODE1, "download", position=10)
        cmd = AddEpisodeActions(self.user.username, [action])
        self.assertRaises(ValidationError, add_episode_actions, cmd)

    def test_nothing_written_on_error(self):
        actions = [
            EpisodeActionData(PODCAST, EPISODE1, "play", "dev1", T1, position=10),
            EpisodeActionData(PODCAST, EPISODE2, "explode", "dev1", T1),
        ]
        cmd = AddEpisodeActions(self.user.username, actions)
        self.assertRaises(ValidationError, add_episode_actions, cmd)

        self.assertFalse(EpisodeAction.objects.filter(user=self.user).exists())
        self.assertFalse(Podcast.objects.filter(user=self.user).exists())
        self.assertFalse(Device.objects.filter(user=self.user).exists())

    def test_invalid_timestamp(self):
        action = EpisodeActionData(PODCAST, EPISODE1, "new", timestamp="not a date")
        cmd = AddEpisodeActions(self.user.username, [action])
        self.assertRaises(ValidationError, add_episode_actions, cmd)

    def test_invalid_device(self):
        action = EpisodeActionData(PODCAST, EPISODE1, "new", device="dev 1")
        cmd = AddEpisodeActions(self.user.username, [action])
        self.assertRaises(ValidationError, add_episode_actions, cmd)

    def test_play_values(self):
        action = EpisodeActionData(
            PODCAST, EPISODE1, "PLAY", "dev1", T1, started="0:10", position=120, total=600
        ).validate()
        self.assertEqual(action.action, EpisodeAction.PLAY)
        self.assertEqual((action.started, action.position, action.total), (10, 120, 600))


class AddEpisodeActionsTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()

    def test_add(self):
        actions = [
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
            EpisodeActionData(
                PODCAST, EPISODE1, "play", "dev1", "2020-01-02T12:00:00", 0, 60, 600
            ),
            EpisodeActionData(PODCAST, EPISODE2, "new", None, None, guid="e2"),
        ]
        update_urls = add_episode_actions(AddEpisodeActions(self.user.username, actions))
        self.assertEqual(update_urls, [])

        entries = list(EpisodeAction.objects.filter(user=self.user))
        self.assertEqual(len(entries), 3)
        self.assertEqual(entries[1].timestamp, T2)
        self.assertEqual(entries[1].position, 60)
        self.assertIsNone(entries[2].device)

        # referenced podcasts are not subscribed
        podcast = Podcast.objects.get(user=self.user, url=PODCAST)
        self.assertFalse(podcast.subscribed)
        self.assertIsNone(podcast.updated)

        self.assertEqual(Episode.objects.get(podcast=podcast, url=EPISODE2).guid, "e2")
        self.assertTrue(Device.objects.filter(user=self.user, name="dev1").exists())

    def test_unusable_urls(self):
        actions = [
            EpisodeActionData("Example.com/podcast.rss", EPISODE1, "new", "dev1", T1),
            EpisodeActionData(PODCAST, "ftp://example.com/x.mp3", "new", "dev1", T1),
        ]
        update_urls = add_episode_actions(AddEpisodeActions(self.user.username, actions))
        self.assertEqual(
            update_urls,
            [("Example.com/podcast.rss", PODCAST), ("ftp://example.com/x.mp3", "")],
        )
        self.assertEqual(EpisodeAction.objects.filter(user=self.user).count(), 1)


class ListEpisodeActionsTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username

    def add(self, *actions):
        add_episode_actions(AddEpisodeActions(self.username, list(actions)))

    def list(self, **kwargs):
        return list_episode_actions(ListEpisodeActions(self.username, **kwargs))

    def test_echo_suppression(self):
        self.add(EpisodeActionData(PODCAST, EPISODE1, "download", "devx", T1))
        Device.objects.create(user=self.user, name="devy")

        self.assertEqual(self.list(device="devx"), [])
        self.assertEqual(len(self.list(device="devy")), 1)
        self.assertEqual(len(self.list()), 1)

    def test_echo_suppression_keeps_actions_without_device(self):
        self.add(
            EpisodeActionData(PODCAST, EPISODE1, "download", None, T1),
            EpisodeActionData(PODCAST, EPISODE1, "play", "devx", T2, position=5),
        )
        actions = self.list(device="devx")
        self.assertEqual([a.action for a in actions], ["download"])

    def test_aggregation(self):
        self.add(
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
            EpisodeActionData(PODCAST, EPISODE1, "play", "dev1", T3, position=5),
            EpisodeActionData(PODCAST, EPISODE1, "delete", "dev1", T2),
        )
        actions = self.list(aggregated=True)
        self.assertEqual(len(actions), 1)
        self.assertEqual(actions[0].timestamp, T3)
        self.assertEqual(actions[0].action, "play")

    def test_aggregation_tie_break(self):
        """ of actions with the same timestamp the last uploaded one wins """
        self.add(
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
            EpisodeActionData(PODCAST, EPISODE1, "delete", "dev1", T1),
        )
        self.add(EpisodeActionData(PODCAST, EPISODE1, "new", "dev1", T1))

        actions = self.list(aggregated=True)
        self.assertEqual([a.action for a in actions], ["new"])

    def test_order(self):
        self.add(
            EpisodeActionData(PODCAST, EPISODE2, "new", "dev1", T2),
            EpisodeActionData(PODCAST, EPISODE1, "new", "dev1", T1),
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T2),
        )
        actions = self.list()
        self.assertEqual(
            [(a.episode.url, a.action) for a in actions],
            [(EPISODE1, "new"), (EPISODE2, "new"), (EPISODE1, "download")],
        )

    def test_since(self):
        self.add(
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
            EpisodeActionData(PODCAST, EPISODE1, "delete", "dev1", T2),
        )
        actions = self.list(since=T1)
        self.assertEqual([a.action for a in actions], ["delete"])

    def test_podcast(self):
        self.add(
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
            EpisodeActionData(
                "http://example.com/other.rss", EPISODE2, "download", "dev1", T1
            ),
        )
        actions = self.list(podcast=PODCAST)
        self.assertEqual([a.episode.url for a in actions], [EPISODE1])

        with self.assertRaises(UnknownPodcast):
            self.list(podcast="http://example.com/unknown.rss")

    def test_limit(self):
        self.add(
            EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
            EpisodeActionData(PODCAST, EPISODE1, "play", "dev1", T2, position=1),
            EpisodeActionData(PODCAST, EPISODE2, "new", "dev1", T3),
        )
        actions = self.list(limit=2)
        self.assertEqual([a.timestamp for a in actions], [T2, T3])

        self.assertRaises(ValidationError, self.list, limit=0)

    def test_no_limit(self):
        """ without a limit, every action since is returned """
        start = datetime(2020, 1, 1, tzinfo=timezone.utc)
        self.add(
            *[
                EpisodeActionData(
                    PODCAST,
                    "http://example.com/e{n}.mp3".format(n=n),
                    "download",
                    "dev1",
                    start + timedelta(minutes=n),
                )
                for n in range(1005)
            ]
        )

        actions = self.list(since=start - timedelta(days=1))
        self.assertEqual(len(actions), 1005)
        self.assertEqual(actions[0].episode.url, "http://example.com/e0.mp3")
        self.assertEqual(actions[-1].episode.url, "http://example.com/e1004.mp3")

        self.assertEqual(len(self.list(aggregated=True)), 1005)


class EpisodeUpdatesTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username
        Device.objects.create(user=self.user, name="dev2")

        add_episode_actions(
            AddEpisodeActions(
                self.username,
                [
                    EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
                    EpisodeActionData(PODCAST, EPISODE1, "play", "dev1", T2, position=5),
                    EpisodeActionData(PODCAST, EPISODE2, "download", "dev2", T3),
                ],
            )
        )
        Podcast.objects.filter(url=PODCAST).update(title="The Podcast")
        Episode.objects.filter(url=EPISODE1).update(title="Episode 1")

    def updates(self, device, since=None):
        return get_episode_updates(GetEpisodeUpdates(self.username, device, since))

    def test_latest_action_per_episode(self):
        updates = self.updates("dev2")
        self.assertEqual(len(updates), 1)

        update = updates[0]
        self.assertEqual(update.url, EPISODE1)
        self.assertEqual(update.title, "Episode 1")
        self.assertEqual(update.podcast_url, PODCAST)
        self.assertEqual(update.podcast_title, "The Podcast")
        self.assertEqual(update.status, "play")
        self.assertEqual(update.released, T2)

    def test_since(self):
        self.assertEqual([u.url for u in self.updates("dev1")], [EPISODE2])
        self.assertEqual(self.updates("dev1", since=T3), [])
        self.assertEqual([u.status for u in self.updates("dev2", since=T1)], ["play"])

    def test_unknown_device(self):
        with self.assertRaises(UnknownDevice):
            self.updates("dev3")
        self.assertFalse(Device.objects.filter(user=self.user, name="dev3").exists())

    def test_invalid_since(self):
        self.assertRaises(ValidationError, self.updates, "dev1", since="not a date")


class LastActionTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username

    def test_last_action(self):
        self.assertRaises(UnknownPodcast, get_last_action, self.username, PODCAST)

        add_episode_actions(
            AddEpisodeActions(
                self.username,
                [
                    EpisodeActionData(PODCAST, EPISODE1, "play", "dev1", T1, position=1),
                    EpisodeActionData(PODCAST, EPISODE1, "delete", "dev1", T2),
                ],
            )
        )

        self.assertEqual(get_last_action(self.username, PODCAST).action, "delete")
        last = get_last_action(self.username, PODCAST, exclude_deleted=True)
        self.assertEqual(last.action, "play")

    def test_no_action(self):
        Podcast.objects.get_or_create_for_url(self.user, PODCAST)
        with self.assertRaises(EpisodeAction.DoesNotExist):
            get_last_action(self.username, PODCAST)


class FavoritesTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()
        self.username = self.user.username
        add_episode_actions(
            AddEpisodeActions(
                self.username,
                [
                    EpisodeActionData(PODCAST, EPISODE1, "download", "dev1", T1),
                    EpisodeActionData(PODCAST, EPISODE2, "download", "dev1", T1),
                ],
            )
        )

    def test_favorites(self):
        self.assertEqual(get_favorites(self.username), [])

        set_favorite(self.username, PODCAST, EPISODE2)
        self.assertEqual([e.url for e in get_favorites(self.username)], [EPISODE2])

        set_favorite(self.username, PODCAST, EPISODE2, favorite=False)
        self.assertEqual(get_favorites(self.username), [])
