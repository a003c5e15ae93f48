import logging

from django.db import DatabaseError
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .compiler import compile_filter
from .errors import StringAnalyzerError, StringNotFound, TypeMismatch
from .interpreter import interpret
from .serializers import (
    ErrorResponseSerializer,
    NaturalLanguageResponseSerializer,
    StringAnalyzeSerializer,
    StringListResponseSerializer,
    StringRecordSerializer,
)
from .store import StringStore

logger = logging.getLogger(__name__)


def error_response(exc: StringAnalyzerError, **extra):
    data = exc.as_response_data()
    data.update(extra)
    return Response(data, status=exc.status_code)


def internal_error_response():
    return Response({"error": "Internal server error"},
                    status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class StoreMixin:
    # override with as_view(store=...) to use another database
    store = None

    def get_store(self):
        if self.store is None:
            self.store = StringStore()
        return self.store


# 1️⃣ POST & GET /strings


class StringAnalyzerView(StoreMixin, APIView):

    @swagger_auto_schema(
        request_body=StringAnalyzeSerializer,
        operation_summary="Analyze and store a new string",
        responses={
            201: StringRecordSerializer,
            400: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
            422: ErrorResponseSerializer,
        },
    )
    def post(self, request):
        serializer = StringAnalyzeSerializer(data=request.data)
        if not serializer.is_valid():
            value_errors = serializer.errors.get('value', [])
            if any(getattr(e, 'code', None) in ('not_a_string', 'null') for e in value_errors):
                return error_response(TypeMismatch())
            if any(getattr(e, 'code', None) == 'required' for e in value_errors):
                return Response({"error": "Missing 'value' field."}, status=status.HTTP_400_BAD_REQUEST)
            return Response({"error": "Invalid request body.", "details": serializer.errors},
                            status=status.HTTP_400_BAD_REQUEST)

        try:
            record = self.get_store().insert(serializer.validated_data['value'])
        except StringAnalyzerError as exc:
            return error_response(exc)
        except DatabaseError:
            logger.exception("Database failure while storing string")
            return internal_error_response()

        return Response(StringRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        operation_summary="List analyzed strings matching the given filters",
        manual_parameters=[
            openapi.Parameter(
                "is_palindrome",
                openapi.IN_QUERY,
                description="Filter by palindrome (true/false)",
                type=openapi.TYPE_BOOLEAN,
            ),
            openapi.Parameter(
                "min_length",
                openapi.IN_QUERY,
                description="Minimum string length",
                type=openapi.TYPE_INTEGER,
            ),
            openapi.Parameter(
                "max_length",
                openapi.IN_QUERY,
                description="Maximum string length",
                type=openapi.TYPE_INTEGER,
            ),
            openapi.Parameter(
                "word_count",
                openapi.IN_QUERY,
                description="Exact word count",
                type=openapi.TYPE_INTEGER,
            ),
            openapi.Parameter(
                "contains_character",
                openapi.IN_QUERY,
                description="Filter strings that contain this character (case-insensitive)",
                type=openapi.TYPE_STRING,
            ),
        ],
        responses={
            200: StringListResponseSerializer,
            400: ErrorResponseSerializer,
            422: ErrorResponseSerializer,
        },
    )
    def get(self, request):
        try:
            string_filter = compile_filter(request.query_params)
            records = self.get_store().query(string_filter)
        except StringAnalyzerError as exc:
            return error_response(exc)
        except DatabaseError:
            logger.exception("Database failure while listing strings")
            return internal_error_response()

        return Response({
            "data": StringRecordSerializer(records, many=True).data,
            "count": len(records),
            "filters_applied": string_filter.as_dict(),
        }, status=status.HTTP_200_OK)

# 2️⃣ GET &  DELETE  /strings/{string_value}


class StringDetailView(StoreMixin, APIView):

    @swagger_auto_schema(
        operation_summary="Retrieve an analyzed string by its value",
        responses={200: StringRecordSerializer, 404: ErrorResponseSerializer},
    )
    def get(self, request, value):
        try:
            record = self.get_store().get_by_value(value)
        except StringAnalyzerError as exc:
            return error_response(exc)
        except DatabaseError:
            logger.exception("Database failure while fetching string")
            return internal_error_response()

        return Response(StringRecordSerializer(record).data, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_summary="Delete an analyzed string by its value",
        responses={204: "String deleted", 404: ErrorResponseSerializer},
    )
    def delete(self, request, value):
        try:
            deleted = self.get_store().delete_by_value(value)
        except StringAnalyzerError as exc:
            return error_response(exc)
        except DatabaseError:
            logger.exception("Database failure while deleting string")
            return internal_error_response()

        if not deleted:
            return error_response(StringNotFound())
        return Response(status=status.HTTP_204_NO_CONTENT)


# 3️⃣ GET /strings/filter-by-natural-language

class NaturalLanguageFilterView(StoreMixin, APIView):
    @swagger_auto_schema(
        operation_summary="Filter analyzed strings using natural language queries",
        manual_parameters=[
            openapi.Parameter(
                "query",
                openapi.IN_QUERY,
                description="Natural language query, e.g. 'all single word palindromic strings'",
                type=openapi.TYPE_STRING,
                required=True,
            )
        ],
        responses={
            200: NaturalLanguageResponseSerializer,
            400: ErrorResponseSerializer,
            422: ErrorResponseSerializer,
        },
    )
    def get(self, request):
        query = request.query_params.get("query", "")
        if not query.strip():
            return Response(
                {"error": "Query parameter is required."},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            string_filter = interpret(query)
        except StringAnalyzerError as exc:
            return Response({
                "error": exc.message,
                "interpreted_query": {
                    "original": query,
                    "parsed_filters": exc.details or {},
                }
            }, status=exc.status_code)

        try:
            records = self.get_store().query(string_filter)
        except StringAnalyzerError as exc:
            return error_response(exc)
        except DatabaseError:
            logger.exception("Database failure while running natural language query")
            return internal_error_response()

        return Response({
            "data": StringRecordSerializer(records, many=True).data,
            "count": len(records),
            "interpreted_query": {
                "original": query,
                "parsed_filters": string_filter.as_dict(),
            }
        }, status=status.HTTP_200_OK)
