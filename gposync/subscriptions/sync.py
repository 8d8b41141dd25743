""" Reconciles the subscriptions that the devices of a user upload

There is only one set of subscriptions per user; every podcast carries the
time of its last subscribe or unsubscribe. The changes a device has to apply
are derived from these timestamps, so no history has to be kept per device.
"""

from collections import namedtuple

from django.utils import timezone

from gposync.core.transaction import repository_transaction
from gposync.podcasts.models import Podcast
from gposync.subscriptions.signals import subscription_changed
from gposync.users.accounts import get_user
from gposync.users.devices import get_device
from gposync.utils import sanitize_urls

import logging

logger = logging.getLogger(__name__)


SubscriptionChanges = namedtuple("SubscriptionChanges", "added removed timestamp")


def replace_subscriptions(cmd):
    """ Makes urls the complete set of subscriptions of the user

    Returns the (url, sanitized_url) pairs of URLs that had to be rewritten;
    the sanitized URL is empty for URLs that have been dropped """
    cmd = cmd.validate()

    urls, update_urls = sanitize_urls(cmd.urls)
    # keep the order but remove duplicates
    urls = list(dict.fromkeys(urls))

    logger.info(
        "replacing subscriptions of {user} from {device} with {num} podcasts".format(
            user=cmd.username, device=cmd.device, num=len(urls)
        )
    )

    with repository_transaction():
        user = get_user(cmd.username)
        device = get_device(user, cmd.device)

        new_urls = set(urls)
        removed = []

        for podcast in Podcast.objects.for_user(user).subscribed():
            if podcast.url in new_urls:
                continue

            if _perform_unsubscribe(podcast, user, device, cmd.timestamp):
                removed.append(podcast)

        added = list(_perform_subscribe(user, device, urls, cmd.timestamp))

    _log_result(user, added, removed)
    _fire_events(user, device, added, removed)
    return update_urls


def change_subscriptions(cmd):
    """ Adds and removes subscriptions of the user

    Returns the (url, sanitized_url) pairs of URLs that had to be rewritten """
    cmd = cmd.validate()

    add_s, add_updates = sanitize_urls(cmd.add)
    rem_s, rem_updates = sanitize_urls(cmd.remove)
    update_urls = add_updates + rem_updates

    add_s = list(dict.fromkeys(add_s))

    # If two different URLs (in add and remove) have
    # been sanitized to the same, we ignore the removal
    rem_s = [url for url in rem_s if url not in add_s]

    logger.info(
        "changing subscriptions of {user} from {device}: +{num_add}/-{num_remove}".format(
            user=cmd.username,
            device=cmd.device,
            num_add=len(add_s),
            num_remove=len(rem_s),
        )
    )

    with repository_transaction():
        user = get_user(cmd.username)
        device = get_device(user, cmd.device)

        added = list(_perform_subscribe(user, device, add_s, cmd.timestamp))

        remove_podcasts = Podcast.objects.for_user(user).filter(url__in=rem_s)
        removed = [
            podcast
            for podcast in remove_podcasts
            if _perform_unsubscribe(podcast, user, device, cmd.timestamp)
        ]

    _log_result(user, added, removed)
    _fire_events(user, device, added, removed)
    return update_urls


def get_subscription_changes(query):
    """ Returns the podcasts that have been subscribed or unsubscribed since

    The device has to exist, but all devices of a user see the same changes.
    Without since, all current subscriptions are returned as added. """
    query = query.validate()

    with repository_transaction():
        user = get_user(query.username)
        get_device(user, query.device, create=False)

        # taken before reading, so that changes that happen concurrently are
        # returned again on the next query
        now = timezone.now()

        podcasts = Podcast.objects.for_user(user).order_by("url")

        if query.since is None:
            added = list(podcasts.subscribed())
            removed = []

        else:
            added, removed = [], []
            for podcast in podcasts.changed_since(query.since):
                if podcast.subscribed:
                    added.append(podcast)
                else:
                    removed.append(podcast)

    logger.info(
        "Subscription Diff: +{num_add}/-{num_remove}".format(
            num_add=len(added), num_remove=len(removed)
        )
    )
    return SubscriptionChanges(added, removed, now)


def get_user_subscriptions(query):
    """ Returns the URLs of the podcasts the user is subscribed to

    If since is given, only podcasts subscribed after since are returned """
    query = query.validate()

    with repository_transaction():
        user = get_user(query.username)

        if query.device is not None:
            get_device(user, query.device, create=False)

        podcasts = Podcast.objects.for_user(user).subscribed()
        if query.since is not None:
            podcasts = podcasts.changed_since(query.since)

        return list(podcasts.order_by("title", "url").values_list("url", flat=True))


def _perform_subscribe(user, device, urls, timestamp):
    """ Subscribes the user to the podcasts with the given URLs

    Yields the podcasts which have been subscribed, ie not those which
    have already been subscribed before """
    for url in urls:
        podcast = Podcast.objects.get_or_create_for_url(user, url)

        if not podcast.set_subscribed(timestamp):
            continue

        logger.debug(
            "{user} subscribed to {podcast} on {device}".format(
                user=user, podcast=podcast.url, device=device.name
            )
        )
        yield podcast


def _perform_unsubscribe(podcast, user, device, timestamp):
    """ Unsubscribes from podcast, returns True if it was subscribed """
    if not podcast.set_unsubscribed(timestamp):
        return False

    logger.debug(
        "{user} unsubscribed from {podcast} on {device}".format(
            user=user, podcast=podcast.url, device=device.name
        )
    )
    return True


def _log_result(user, added, removed):
    logger.info(
        "{user}: {num_add} podcasts subscribed, {num_remove} unsubscribed".format(
            user=user, num_add=len(added), num_remove=len(removed)
        )
    )


def _fire_events(user, device, added, removed):
    """ Fire the events for subscription / unsubscription """
    for podcasts, subscribed in ((added, True), (removed, False)):
        for podcast in podcasts:
            subscription_changed.send(
                sender=podcast.__class__,
                instance=podcast,
                user=user,
                device=device,
                subscribed=subscribed,
            )
