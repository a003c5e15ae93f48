from rest_framework import serializers

from .models import StringRecord


class StringRecordSerializer(serializers.ModelSerializer):
    properties = serializers.DictField(read_only=True)

    class Meta:
        model = StringRecord
        fields = ['id', 'value', 'properties', 'created_at']


class StrictCharField(serializers.CharField):
    """CharField that refuses to coerce numbers, booleans or objects into text."""
    default_error_messages = {
        'not_a_string': 'Invalid data type for this field (must be a string).',
    }

    def to_internal_value(self, data):
        if not isinstance(data, str):
            self.fail('not_a_string')
        return super().to_internal_value(data)


class StringAnalyzeSerializer(serializers.Serializer):
    # stored verbatim: no trimming, empty string allowed
    value = StrictCharField(allow_blank=True, trim_whitespace=False)


class StringFilterSerializer(serializers.Serializer):
    """
    Validates the structured filter fields.

    Unknown keys are ignored. Individually malformed fields produce ordinary
    field errors; well-formed but contradictory length bounds produce a
    non-field error with the ``conflicting_bounds`` code.
    """
    is_palindrome = serializers.BooleanField(required=False)
    min_length = serializers.IntegerField(required=False, min_value=0)
    max_length = serializers.IntegerField(required=False, min_value=0)
    word_count = serializers.IntegerField(required=False, min_value=0)
    contains_character = serializers.CharField(
        required=False, min_length=1, max_length=1, trim_whitespace=False,
        error_messages={
            'min_length': 'contains_character must be exactly one character.',
            'max_length': 'contains_character must be exactly one character.',
        },
    )

    def validate(self, attrs):
        min_length = attrs.get('min_length')
        max_length = attrs.get('max_length')
        if min_length is not None and max_length is not None and min_length > max_length:
            raise serializers.ValidationError(
                'min_length cannot be greater than max_length.', code='conflicting_bounds')
        return attrs


class StringListResponseSerializer(serializers.Serializer):
    data = StringRecordSerializer(many=True)
    count = serializers.IntegerField()
    filters_applied = serializers.DictField()


class InterpretedQuerySerializer(serializers.Serializer):
    original = serializers.CharField()
    parsed_filters = serializers.DictField()


class NaturalLanguageResponseSerializer(serializers.Serializer):
    data = StringRecordSerializer(many=True)
    count = serializers.IntegerField()
    interpreted_query = InterpretedQuerySerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    details = serializers.JSONField(required=False)
