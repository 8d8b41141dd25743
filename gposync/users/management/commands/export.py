import json

from django.core.management.base import BaseCommand

from gposync.users.maintenance import export_all


class Command(BaseCommand):
    """ Writes the data of all users as JSON """

    def add_arguments(self, parser):
        parser.add_argument(
            "--output", help="file to write to; standard output if not given"
        )

    def handle(self, *args, **options):
        data = json.dumps(export_all(), indent=2)

        if options["output"]:
            with open(options["output"], "w", encoding="utf-8") as f:
                f.write(data)
        else:
            self.stdout.write(data)
