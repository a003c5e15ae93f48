import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from .analyzer import analyze, content_address
from .compiler import StringFilter, compile_filter
from .errors import Conflict, InvalidFilter, StringNotFound
from .filters import StringRecordFilter
from .models import StringRecord

logger = logging.getLogger(__name__)


class StringStore:
    """
    Content-addressed persistence for analyzed strings.

    Records are keyed by the SHA-256 of their value, so the primary key
    constraint is what guarantees a value is stored at most once. Construct one
    per database alias and hand it to whatever needs it.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _records(self):
        return StringRecord.objects.using(self.using)

    def insert(self, value: str) -> StringRecord:
        """
        Analyze ``value`` and persist it.

        The insert is a single INSERT against the primary key; a concurrent or
        earlier insert of the same value surfaces as ``Conflict``. There is no
        existence check beforehand.
        """
        analysis = analyze(value)
        props = analysis.properties

        try:
            with transaction.atomic(using=self.using):
                record = self._records().create(
                    id=analysis.id,
                    value=value,
                    length=props['length'],
                    is_palindrome=props['is_palindrome'],
                    unique_characters=props['unique_characters'],
                    word_count=props['word_count'],
                    character_frequency_map=props['character_frequency_map'],
                )
        except IntegrityError:
            logger.info("Rejected duplicate string id=%s", analysis.id)
            raise Conflict()

        logger.info("Stored string id=%s length=%s", record.id, record.length)
        return record

    def get_by_value(self, value: str) -> StringRecord:
        address = content_address(value)
        try:
            return self._records().get(pk=address)
        except StringRecord.DoesNotExist:
            logger.debug("No string with id=%s", address)
            raise StringNotFound()

    def query(self, string_filter=None) -> list:
        """
        Return every record matching ``string_filter``, newest first.

        Accepts a compiled ``StringFilter`` or a raw mapping, which is compiled
        first. An empty filter matches everything.
        """
        if not isinstance(string_filter, StringFilter):
            string_filter = compile_filter(string_filter)

        filterset = StringRecordFilter(
            data=string_filter.as_dict(), queryset=self._records().all())
        if not filterset.is_valid():
            raise InvalidFilter(details=filterset.errors)

        records = list(filterset.qs)
        logger.debug("Query %s matched %d strings", string_filter.as_dict(), len(records))
        return records

    def delete_by_value(self, value: str) -> bool:
        """Remove the record for ``value``; returns whether one existed."""
        address = content_address(value)
        deleted, _ = self._records().filter(pk=address).delete()
        if deleted:
            logger.info("Deleted string id=%s", address)
        return deleted > 0
