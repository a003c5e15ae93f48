import json

from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError
from django.utils.connection import ConnectionDoesNotExist

from string_analyzer.analyzer import analyze
from string_analyzer.errors import StringAnalyzerError
from string_analyzer.serializers import StringRecordSerializer
from string_analyzer.store import StringStore


class Command(BaseCommand):
    help = "Print the analyzed properties of a string, optionally storing it."

    def add_arguments(self, parser):
        parser.add_argument('value', help="The string to analyze")
        parser.add_argument(
            '--store', action='store_true',
            help="Insert the string into the database as well",
        )
        parser.add_argument(
            '--database', default='default',
            help="Database alias to store into (default: 'default')",
        )

    def handle(self, *args, **options):
        value = options['value']

        try:
            if options['store']:
                record = StringStore(using=options['database']).insert(value)
                payload = StringRecordSerializer(record).data
            else:
                analysis = analyze(value)
                payload = {'id': analysis.id, 'value': value, 'properties': analysis.properties}
        except StringAnalyzerError as exc:
            raise CommandError(exc.message)
        except ConnectionDoesNotExist as exc:
            raise CommandError(f"Unknown database alias: {exc}")
        except DatabaseError as exc:
            raise CommandError(f"Database error: {exc}")

        self.stdout.write(json.dumps(payload, indent=2, ensure_ascii=False))
