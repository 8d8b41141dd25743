from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from gposync.core.exceptions import UnknownUser
from gposync.users.devices import list_devices


class Command(BaseCommand):
    """ Lists the devices of a user """

    def add_arguments(self, parser):
        parser.add_argument("username")

    def handle(self, *args, **options):
        try:
            devices = list_devices(options["username"])
        except (UnknownUser, ValidationError) as ex:
            raise CommandError(str(ex)) from ex

        for device in devices:
            self.stdout.write(
                "{name}\t{type}\t{subscriptions}\t{caption}".format(
                    **device._asdict()
                )
            )
