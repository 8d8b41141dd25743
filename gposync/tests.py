import doctest
import unittest
from datetime import datetime, timezone

from gposync import utils
from gposync.utils import normalize_feed_url, sanitize_urls, parse_since


class TestNormalizeFeedURL(unittest.TestCase):
    def test_normalize_url(self):
        # too short to be a URL
        self.assertEqual(normalize_feed_url(" "), None)

        # URL with missing http:// is corrected
        url = "www.example.com/rss/videos.rss"
        self.assertEqual(normalize_feed_url(url), "http://www.example.com/rss/videos.rss")

        # feed:// URL is normalized to http://
        url = "feed://@example.com"
        self.assertEqual(normalize_feed_url(url), "http://example.com/")

        # unsupported scheme (gopher://) returns None
        url = "gopher://example.com"
        self.assertEqual(normalize_feed_url(url), None)

    def test_https_is_kept(self):
        url = "https://example.com/feed.xml"
        self.assertEqual(normalize_feed_url(url), url)

    def test_sanitize_urls(self):
        urls, update_urls = sanitize_urls(
            ["http://example.com/a.rss", "Example.com/b.rss", "ftp://example.com/c"]
        )
        self.assertEqual(
            urls, ["http://example.com/a.rss", "http://example.com/b.rss"]
        )
        self.assertEqual(
            update_urls,
            [
                ("Example.com/b.rss", "http://example.com/b.rss"),
                ("ftp://example.com/c", ""),
            ],
        )


class TestParseSince(unittest.TestCase):
    def test_aware_datetime(self):
        since = datetime(2020, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.assertEqual(parse_since(since), since)

    def test_negative(self):
        self.assertRaises(ValueError, parse_since, -1)


class TestDoctests(unittest.TestCase):
    def test_utils(self):
        failures, tested = doctest.testmod(utils)
        self.assertGreater(tested, 0)
        self.assertEqual(failures, 0)
