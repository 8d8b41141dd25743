import getpass

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from gposync.users.accounts import create_user


class Command(BaseCommand):
    """ Creates a new user account """

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("--email", default="")
        parser.add_argument(
            "--password", help="the password; prompted for if not given"
        )

    def handle(self, *args, **options):
        username = options["username"]
        password = options["password"] or getpass.getpass()

        try:
            create_user(username, password, options["email"])
        except ValidationError as ex:
            raise CommandError("; ".join(ex.messages)) from ex

        self.stdout.write("Created user {username}".format(username=username))
