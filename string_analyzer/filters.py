import django_filters
from django.db.models import Q

from .models import StringRecord


def case_variants(character):
    # single-character forms only: "ß".upper() is "SS"
    return {v for v in (character, character.lower(), character.upper()) if len(v) == 1}


class StringRecordFilter(django_filters.FilterSet):
    is_palindrome = django_filters.BooleanFilter(field_name='is_palindrome')
    min_length = django_filters.NumberFilter(field_name='length', lookup_expr='gte')
    max_length = django_filters.NumberFilter(field_name='length', lookup_expr='lte')
    word_count = django_filters.NumberFilter(field_name='word_count')
    contains_character = django_filters.CharFilter(
        field_name='value', method='filter_contains_character', strip=False)

    class Meta:
        model = StringRecord
        fields = ['is_palindrome', 'min_length', 'max_length', 'word_count', 'contains_character']

    def filter_contains_character(self, queryset, name, value):
        # SQLite LIKE only folds ASCII, so match every case form explicitly
        condition = Q()
        for variant in case_variants(value):
            condition |= Q(**{f'{name}__contains': variant})
        return queryset.filter(condition)
