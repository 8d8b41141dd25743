from django.core.management.base import BaseCommand

from gposync.users.accounts import list_users


class Command(BaseCommand):
    """ Lists the user accounts """

    def add_arguments(self, parser):
        parser.add_argument(
            "--active-only",
            action="store_true",
            default=False,
            help="leave out locked accounts",
        )

    def handle(self, *args, **options):
        for user in list_users(active_only=options["active_only"]):
            self.stdout.write(
                "{username}\t{email}\t{status}".format(
                    username=user.username,
                    email=user.email,
                    status="" if user.is_active else "LOCKED",
                )
            )
