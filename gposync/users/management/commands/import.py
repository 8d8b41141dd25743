import json
import sys

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from gposync.users.maintenance import import_all


class Command(BaseCommand):
    """ Loads users from a JSON file written by the export command

    Either all users are imported, or none """

    def add_arguments(self, parser):
        parser.add_argument("filename", help="the dump; - reads standard input")

    def handle(self, *args, **options):
        filename = options["filename"]

        try:
            if filename == "-":
                data = json.load(sys.stdin)
            else:
                with open(filename, encoding="utf-8") as f:
                    data = json.load(f)
        except (OSError, ValueError) as ex:
            raise CommandError(
                "can not read {f}: {err}".format(f=filename, err=ex)
            ) from ex

        try:
            num = import_all(data)
        except ValidationError as ex:
            raise CommandError("; ".join(ex.messages)) from ex
        except (KeyError, TypeError) as ex:
            raise CommandError("invalid dump: {err}".format(err=ex)) from ex

        self.stdout.write("Imported {num} users".format(num=num))
