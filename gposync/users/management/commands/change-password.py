import getpass

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from gposync.core.exceptions import UnknownUser
from gposync.users.accounts import change_password


class Command(BaseCommand):
    """ Sets a new password for a user """

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument(
            "--password", help="the new password; prompted for if not given"
        )

    def handle(self, *args, **options):
        username = options["username"]
        password = options["password"] or getpass.getpass()

        try:
            change_password(username, password)
        except (UnknownUser, ValidationError) as ex:
            raise CommandError(str(ex)) from ex

        self.stdout.write(
            "Changed password of {username}".format(username=username)
        )
