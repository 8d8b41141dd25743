from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from gposync.core.exceptions import UnknownUser
from gposync.users.accounts import lock_user


class Command(BaseCommand):
    """ Locks a user account; its data is kept """

    def add_arguments(self, parser):
        parser.add_argument("username")

    def handle(self, *args, **options):
        username = options["username"]

        try:
            lock_user(username)
        except (UnknownUser, ValidationError) as ex:
            raise CommandError(str(ex)) from ex

        self.stdout.write("Locked user {username}".format(username=username))
