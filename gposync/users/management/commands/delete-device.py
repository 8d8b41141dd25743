from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from gposync.core.exceptions import UnknownObject
from gposync.users.devices import delete_device


class Command(BaseCommand):
    """ Deletes a device of a user

    The episode actions uploaded from the device are kept """

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("device")

    def handle(self, *args, **options):
        try:
            delete_device(options["username"], options["device"])
        except (UnknownObject, ValidationError) as ex:
            raise CommandError(str(ex)) from ex

        self.stdout.write("Deleted device {device}".format(device=options["device"]))
