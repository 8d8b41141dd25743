""" Looking up and maintaining user accounts """

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from gposync.core.exceptions import UnknownUser
from gposync.core.transaction import repository_transaction
from gposync.users.commands import validate_username

import logging

logger = logging.getLogger(__name__)


def get_user(username):
    """ Returns the active or locked user with the given username """
    validate_username(username)

    User = get_user_model()
    try:
        return User.objects.get(username=username)

    except User.DoesNotExist as ex:
        raise UnknownUser(username) from ex


def create_user(username, password, email=""):
    validate_username(username)

    User = get_user_model()

    with repository_transaction():
        if User.objects.filter(username=username).exists():
            raise ValidationError(
                "username %(username)s is already taken",
                code="username-taken",
                params={"username": username},
            )

        user = User(username=username, email=email)
        user.set_password(password)
        user.is_active = True
        user.save()

    logger.info("created user %s", username)
    return user


def lock_user(username):
    """ Locks the account so that it can not be used anymore

    The data of the user is kept """
    with repository_transaction():
        user = get_user(username)
        user.is_active = False
        user.set_unusable_password()
        user.save(update_fields=["is_active", "password"])

    logger.info("locked user %s", username)
    return user


def change_password(username, password):
    if not password:
        raise ValidationError("password must not be empty", code="invalid-password")

    with repository_transaction():
        user = get_user(username)
        user.set_password(password)
        user.save(update_fields=["password"])

    logger.info("changed password of user %s", username)
    return user


def list_users(active_only=False):
    """ Returns all users ordered by username, or only those not locked """
    User = get_user_model()
    users = User.objects.order_by("username")
    if active_only:
        users = users.filter(is_active=True)

    with repository_transaction():
        return list(users)
