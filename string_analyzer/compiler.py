from dataclasses import asdict, dataclass
from typing import Optional

from rest_framework.settings import api_settings

from .errors import ConflictingFilter, InvalidFilter
from .serializers import StringFilterSerializer

FILTER_FIELDS = (
    "is_palindrome",
    "min_length",
    "max_length",
    "word_count",
    "contains_character",
)


@dataclass(frozen=True)
class StringFilter:
    """A validated structured filter. ``None`` means the field is not applied."""
    is_palindrome: Optional[bool] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    word_count: Optional[int] = None
    contains_character: Optional[str] = None

    def as_dict(self) -> dict:
        """Only the fields actually applied, for echoing back to callers."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @property
    def is_empty(self) -> bool:
        return not self.as_dict()


def _is_conflict(errors) -> bool:
    non_field = errors.get(api_settings.NON_FIELD_ERRORS_KEY, [])
    return any(getattr(e, "code", None) == "conflicting_bounds" for e in non_field)


def compile_filter(params) -> StringFilter:
    """
    Validate and normalize a structured filter request.

    ``params`` may be a plain mapping or a ``QueryDict``. Unrecognized keys are
    ignored. Raises ``InvalidFilter`` for malformed fields and
    ``ConflictingFilter`` when ``min_length > max_length``. Never touches the
    database.
    """
    if params is None:
        params = {}
    if hasattr(params, "dict"):
        # QueryDict: flatten to single values so absent booleans stay absent
        params = params.dict()

    data = {k: v for k, v in params.items() if k in FILTER_FIELDS}
    serializer = StringFilterSerializer(data=data)
    if not serializer.is_valid():
        if _is_conflict(serializer.errors):
            raise ConflictingFilter(details=data)
        raise InvalidFilter(details=serializer.errors)

    return StringFilter(**serializer.validated_data)
