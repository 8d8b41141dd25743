from datetime import datetime, timezone

from django.test import TestCase

from gposync.core.exceptions import UnknownPodcast
from gposync.podcasts.models import Podcast, Episode
from gposync.test import create_user


T1 = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2020, 1, 2, 12, 0, tzinfo=timezone.utc)


class PodcastTests(TestCase):
    """ Test podcasts and their subscription state """

    def setUp(self):
        self.user, pwd = create_user()

    def test_get_or_create_for_url(self):
        """ Test that get_or_create_for_url returns existing Podcast """
        URL = "http://example.com/get_or_create.rss"
        p1 = Podcast.objects.get_or_create_for_url(self.user, URL)
        p2 = Podcast.objects.get_or_create_for_url(self.user, URL)
        self.assertEqual(p1.pk, p2.pk)
        self.assertFalse(p1.subscribed)
        self.assertIsNone(p1.updated)

    def test_podcasts_are_per_user(self):
        URL = "http://example.com/podcast.rss"
        other, pwd = create_user()
        p1 = Podcast.objects.get_or_create_for_url(self.user, URL)
        p2 = Podcast.objects.get_or_create_for_url(other, URL)
        self.assertNotEqual(p1.pk, p2.pk)

    def test_set_subscribed(self):
        podcast = Podcast.objects.get_or_create_for_url(
            self.user, "http://example.com/podcast.rss"
        )
        self.assertTrue(podcast.set_subscribed(T1))
        self.assertFalse(podcast.set_subscribed(T2))

        podcast.refresh_from_db()
        self.assertTrue(podcast.subscribed)
        # a repeated subscription does not touch the timestamp
        self.assertEqual(podcast.updated, T1)

        self.assertTrue(podcast.set_unsubscribed(T2))
        podcast.refresh_from_db()
        self.assertFalse(podcast.subscribed)
        self.assertEqual(podcast.updated, T2)

    def test_get_for_url(self):
        podcast = Podcast.objects.get_or_create_for_url(
            self.user, "http://example.com/podcast.rss"
        )
        found = Podcast.objects.get_for_url(self.user, "Example.com/podcast.rss")
        self.assertEqual(found.pk, podcast.pk)

        with self.assertRaises(UnknownPodcast):
            Podcast.objects.get_for_url(self.user, "http://example.com/other.rss")


class EpisodeTests(TestCase):
    def setUp(self):
        self.user, pwd = create_user()
        self.podcast = Podcast.objects.get_or_create_for_url(
            self.user, "http://example.com/podcast.rss"
        )

    def test_get_or_create_for_url(self):
        URL = "http://example.com/episode-1.mp3"
        e1 = Episode.objects.get_or_create_for_url(self.podcast, URL)
        e2 = Episode.objects.get_or_create_for_url(
            self.podcast, URL, defaults={"guid": "episode-1"}
        )
        self.assertEqual(e1.pk, e2.pk)
        # the GUID is filled in once it is known
        self.assertEqual(e2.guid, "episode-1")

    def test_get_by_url_or_guid(self):
        e1 = Episode.objects.get_or_create_for_url(
            self.podcast, "http://example.com/episode-1.mp3", defaults={"guid": "a"}
        )
        e2 = Episode.objects.get_or_create_for_url(
            self.podcast, "http://example.com/episode-2.mp3"
        )

        get = Episode.objects.get_by_url_or_guid
        self.assertEqual(get(self.podcast, "http://example.com/episode-1.mp3"), e1)
        self.assertEqual(get(self.podcast, "a"), e1)
        self.assertEqual(get(self.podcast, "Example.com/episode-2.mp3"), e2)

        with self.assertRaises(Episode.DoesNotExist):
            get(self.podcast, "http://example.com/episode-3.mp3")
