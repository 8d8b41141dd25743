""" Validation helpers shared by the command and query objects """

from django.core.exceptions import ValidationError
from django.utils import timezone

from gposync.utils import parse_timestamp, parse_since


def validate_urls(name, urls):
    if isinstance(urls, str) or not all(isinstance(url, str) for url in urls):
        raise ValidationError(
            "%(name)s must be a list of URLs", code="invalid-urls", params={"name": name}
        )


def validate_timestamp(timestamp):
    """ Returns timestamp as an aware datetime; None means now """
    if timestamp is None:
        return timezone.now()

    try:
        return parse_timestamp(timestamp)
    except (ValueError, TypeError, OverflowError) as ex:
        raise ValidationError(
            "invalid timestamp %(timestamp)s",
            code="invalid-timestamp",
            params={"timestamp": timestamp},
        ) from ex


def validate_since(since):
    try:
        return parse_since(since)
    except (ValueError, TypeError, OverflowError) as ex:
        raise ValidationError(
            "invalid value for since: %(since)s",
            code="invalid-since",
            params={"since": since},
        ) from ex
