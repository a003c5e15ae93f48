import json
from io import StringIO
from unittest import mock
from urllib.parse import quote

from django.core.management import CommandError, call_command
from django.db import DatabaseError
from django.http import QueryDict
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient, APIRequestFactory

from .analyzer import analyze, analyze_string, content_address
from .compiler import StringFilter, compile_filter
from .errors import (
    Conflict,
    ConflictingFilter,
    InvalidFilter,
    StringNotFound,
    TypeMismatch,
    Unparseable,
)
from .interpreter import interpret
from .models import StringRecord
from .store import StringStore
from .views import StringAnalyzerView

HELLO_WORLD_SHA256 = "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class AnalyzerTests(SimpleTestCase):

    def test_hello_world_properties(self):
        props = analyze_string("hello world")
        self.assertEqual(props["length"], 11)
        self.assertEqual(props["unique_characters"], 8)
        self.assertEqual(props["word_count"], 2)
        self.assertFalse(props["is_palindrome"])
        self.assertEqual(props["sha256_hash"], HELLO_WORLD_SHA256)
        self.assertEqual(props["character_frequency_map"], {
            "h": 1, "e": 1, "l": 3, "o": 2, " ": 1, "w": 1, "r": 1, "d": 1,
        })

    def test_id_is_sha256_of_value(self):
        analysis = analyze("hello world")
        self.assertEqual(analysis.id, HELLO_WORLD_SHA256)
        self.assertEqual(analysis.properties["sha256_hash"], analysis.id)
        self.assertEqual(content_address("hello world"), analysis.id)

    def test_palindrome_ignores_case_and_punctuation(self):
        self.assertTrue(analyze_string("A man, a plan, a canal: Panama")["is_palindrome"])
        self.assertTrue(analyze_string("Racecar")["is_palindrome"])
        self.assertFalse(analyze_string("hello")["is_palindrome"])

    def test_palindrome_with_nothing_left_after_normalizing(self):
        self.assertTrue(analyze_string("")["is_palindrome"])
        self.assertTrue(analyze_string("?!, ")["is_palindrome"])

    def test_word_count_trims_and_collapses_whitespace(self):
        self.assertEqual(analyze_string("  hello   world  ")["word_count"], 2)
        self.assertEqual(analyze_string("")["word_count"], 0)
        self.assertEqual(analyze_string(" \t\n ")["word_count"], 0)
        self.assertEqual(analyze_string("one\ttwo\nthree")["word_count"], 3)

    def test_empty_string(self):
        analysis = analyze("")
        self.assertEqual(analysis.id, EMPTY_SHA256)
        self.assertEqual(analysis.properties["length"], 0)
        self.assertEqual(analysis.properties["unique_characters"], 0)
        self.assertEqual(analysis.properties["character_frequency_map"], {})

    def test_length_counts_code_points(self):
        props = analyze_string("naïve ☕")
        self.assertEqual(props["length"], 7)
        self.assertEqual(props["character_frequency_map"]["☕"], 1)
        self.assertEqual(analyze("naïve ☕").id, content_address("naïve ☕"))

    def test_frequency_map_keeps_case_and_punctuation(self):
        props = analyze_string("Aa!a")
        self.assertEqual(props["character_frequency_map"], {"A": 1, "a": 2, "!": 1})
        self.assertEqual(props["unique_characters"], 3)

    def test_deterministic(self):
        value = "  Was it a car or a cat I saw?  "
        self.assertEqual(analyze(value), analyze(value))

    def test_distinct_values_have_distinct_ids(self):
        self.assertNotEqual(analyze("abc").id, analyze("abc ").id)
        self.assertNotEqual(analyze("abc").id, analyze("ABC").id)

    def test_non_string_is_type_mismatch(self):
        for bad in (123, None, 1.5, True, ["a"], b"bytes"):
            with self.assertRaises(TypeMismatch):
                analyze(bad)

    def test_lone_surrogate_is_type_mismatch(self):
        for bad in ("\ud800", "abc\udfffdef"):
            with self.assertRaises(TypeMismatch):
                analyze(bad)
            with self.assertRaises(TypeMismatch):
                content_address(bad)


class FilterCompilerTests(SimpleTestCase):

    def test_empty_request_matches_everything(self):
        self.assertTrue(compile_filter({}).is_empty)
        self.assertTrue(compile_filter(None).is_empty)
        self.assertTrue(compile_filter(QueryDict("")).is_empty)

    def test_query_params_are_typed(self):
        params = QueryDict("is_palindrome=false&min_length=3&max_length=10&word_count=1&contains_character=a")
        string_filter = compile_filter(params)
        self.assertEqual(string_filter, StringFilter(
            is_palindrome=False, min_length=3, max_length=10,
            word_count=1, contains_character="a",
        ))

    def test_as_dict_only_lists_applied_fields(self):
        string_filter = compile_filter({"min_length": "4"})
        self.assertEqual(string_filter.as_dict(), {"min_length": 4})

    def test_unknown_fields_are_ignored(self):
        string_filter = compile_filter({"word_count": 2, "sort": "desc", "page": "3"})
        self.assertEqual(string_filter.as_dict(), {"word_count": 2})

    def test_contains_character_must_be_one_character(self):
        for bad in ("ab", ""):
            with self.assertRaises(InvalidFilter):
                compile_filter({"contains_character": bad})
        self.assertEqual(compile_filter({"contains_character": " "}).contains_character, " ")

    def test_malformed_numbers_are_invalid(self):
        for bad in ({"min_length": "abc"}, {"max_length": "-1"}, {"word_count": "1.5"}):
            with self.assertRaises(InvalidFilter):
                compile_filter(bad)

    def test_malformed_boolean_is_invalid(self):
        with self.assertRaises(InvalidFilter):
            compile_filter({"is_palindrome": "maybe"})

    def test_min_greater_than_max_is_conflicting(self):
        with self.assertRaises(ConflictingFilter):
            compile_filter({"min_length": 10, "max_length": 5})

    def test_equal_bounds_are_allowed(self):
        string_filter = compile_filter({"min_length": 5, "max_length": 5})
        self.assertEqual(string_filter.min_length, 5)
        self.assertEqual(string_filter.max_length, 5)

    def test_malformed_field_wins_over_conflict(self):
        with self.assertRaises(InvalidFilter):
            compile_filter({"min_length": 10, "max_length": 5, "contains_character": "xy"})


class InterpreterTests(SimpleTestCase):

    def test_combined_query(self):
        string_filter = interpret("Find a single word palindromic string longer than 5")
        self.assertEqual(string_filter.as_dict(), {
            "word_count": 1, "is_palindrome": True, "min_length": 6,
        })

    def test_unrecognised_query_is_unparseable(self):
        with self.assertRaises(Unparseable):
            interpret("tell me a joke")

    def test_palindrome_variants(self):
        self.assertTrue(interpret("palindromes please").is_palindrome)
        self.assertTrue(interpret("ALL PALINDROMIC STRINGS").is_palindrome)

    def test_shorter_than_is_exclusive(self):
        self.assertEqual(interpret("strings shorter than 5 characters").max_length, 4)

    def test_longer_than_is_exclusive(self):
        self.assertEqual(interpret("strings longer than 10 characters").min_length, 11)

    def test_conflicting_bounds(self):
        with self.assertRaises(ConflictingFilter) as ctx:
            interpret("strings longer than 10 and shorter than 5")
        self.assertEqual(ctx.exception.details, {"min_length": 11, "max_length": 4})

    def test_shorter_than_zero_is_conflicting(self):
        with self.assertRaises(ConflictingFilter):
            interpret("strings shorter than 0 characters")

    def test_containing_the_letter(self):
        self.assertEqual(interpret("strings containing the letter Z").contains_character, "z")
        self.assertEqual(interpret("words that contain the letter q").contains_character, "q")

    def test_letter_must_be_a_single_letter(self):
        with self.assertRaises(Unparseable):
            interpret("strings containing the letter zz")
        with self.assertRaises(Unparseable):
            interpret("strings containing the letter 7")

    def test_first_vowel_heuristic(self):
        self.assertEqual(interpret("strings with the first vowel").contains_character, "a")
        self.assertEqual(
            interpret("containing the letter z and the first vowel").contains_character, "a")

    def test_other_word_counts(self):
        self.assertEqual(interpret("two words").word_count, 2)
        self.assertEqual(interpret("three words").word_count, 3)
        self.assertEqual(interpret("strings with a word count of 4").word_count, 4)
        self.assertEqual(interpret("single word or two words").word_count, 1)


class StringStoreTests(TestCase):
    def setUp(self):
        self.store = StringStore()

    def test_insert_returns_analyzed_record(self):
        record = self.store.insert("racecar")
        self.assertEqual(record.id, content_address("racecar"))
        self.assertEqual(record.value, "racecar")
        self.assertTrue(record.is_palindrome)
        self.assertIsNotNone(record.created_at)

    def test_duplicate_insert_conflicts(self):
        self.store.insert("hello world")
        with self.assertRaises(Conflict):
            self.store.insert("hello world")
        self.assertEqual(StringRecord.objects.filter(value="hello world").count(), 1)

    def test_conflict_comes_from_the_unique_key(self):
        # row written behind the store's back, as a concurrent insert would
        props = analyze_string("race")
        StringRecord.objects.create(
            id=props["sha256_hash"], value="race", length=props["length"],
            is_palindrome=props["is_palindrome"],
            unique_characters=props["unique_characters"],
            word_count=props["word_count"],
            character_frequency_map=props["character_frequency_map"],
        )
        with self.assertRaises(Conflict):
            self.store.insert("race")
        self.assertEqual(StringRecord.objects.count(), 1)

    def test_value_is_stored_verbatim(self):
        self.store.insert("  Padded Value  ")
        record = self.store.get_by_value("  Padded Value  ")
        self.assertEqual(record.value, "  Padded Value  ")
        with self.assertRaises(StringNotFound):
            self.store.get_by_value("padded value")

    def test_insert_rejects_non_string(self):
        with self.assertRaises(TypeMismatch):
            self.store.insert(42)
        with self.assertRaises(TypeMismatch):
            self.store.insert("\ud800")
        self.assertEqual(StringRecord.objects.count(), 0)

    def test_get_missing_value(self):
        with self.assertRaises(StringNotFound):
            self.store.get_by_value("nothing here")

    def test_delete_by_value(self):
        self.store.insert("to be removed")
        self.assertTrue(self.store.delete_by_value("to be removed"))
        self.assertFalse(self.store.delete_by_value("to be removed"))
        with self.assertRaises(StringNotFound):
            self.store.get_by_value("to be removed")

    def test_round_trip_properties(self):
        for value in ("hello world", "", "naïve café ☕", "A man, a plan, a canal: Panama"):
            self.store.insert(value)
            stored = self.store.get_by_value(value)
            self.assertEqual(analyze(stored.value).properties, stored.properties)


class StringStoreQueryTests(TestCase):
    def setUp(self):
        self.store = StringStore()
        for value in ("racecar", "level", "hello world", "Zebra crossing", "a", "Never odd or even"):
            self.store.insert(value)

    def values(self, records):
        return {r.value for r in records}

    def test_empty_filter_returns_all(self):
        self.assertEqual(len(self.store.query(StringFilter())), 6)
        self.assertEqual(len(self.store.query()), 6)

    def test_palindrome_filter(self):
        records = self.store.query(StringFilter(is_palindrome=True))
        self.assertEqual(self.values(records), {"racecar", "level", "a", "Never odd or even"})
        records = self.store.query(StringFilter(is_palindrome=False))
        self.assertEqual(self.values(records), {"hello world", "Zebra crossing"})

    def test_length_bounds_are_inclusive(self):
        records = self.store.query(StringFilter(min_length=5, max_length=7))
        self.assertEqual(self.values(records), {"racecar", "level"})

    def test_word_count(self):
        records = self.store.query(StringFilter(word_count=2))
        self.assertEqual(self.values(records), {"hello world", "Zebra crossing"})

    def test_contains_character_is_case_insensitive(self):
        self.assertEqual(self.values(self.store.query(StringFilter(contains_character="z"))),
                         {"Zebra crossing"})
        self.assertEqual(self.values(self.store.query(StringFilter(contains_character="N"))),
                         {"Never odd or even", "Zebra crossing"})

    def test_raw_mapping_is_compiled(self):
        records = self.store.query({"word_count": "1", "is_palindrome": "true", "min_length": "2"})
        self.assertEqual(self.values(records), {"racecar", "level"})

    def test_conflicting_mapping_never_reaches_the_database(self):
        with mock.patch("string_analyzer.store.StringRecordFilter") as filterset:
            with self.assertRaises(ConflictingFilter):
                self.store.query({"min_length": 10, "max_length": 5})
        filterset.assert_not_called()

    def test_interpreted_filter_runs_against_store(self):
        records = self.store.query(interpret("single word palindromes longer than 4"))
        self.assertEqual(self.values(records), {"racecar", "level"})


class UnicodeContainsCharacterTests(TestCase):
    def setUp(self):
        self.store = StringStore()
        for value in ("CAFÉ", "école", "Straße", "MASS", "Ωmega", "plain"):
            self.store.insert(value)

    def values(self, records):
        return {r.value for r in records}

    def test_lowercase_letter_matches_uppercase_text(self):
        records = self.store.query(StringFilter(contains_character="é"))
        self.assertEqual(self.values(records), {"CAFÉ", "école"})

    def test_uppercase_letter_matches_lowercase_text(self):
        records = self.store.query(StringFilter(contains_character="É"))
        self.assertEqual(self.values(records), {"CAFÉ", "école"})
        records = self.store.query(StringFilter(contains_character="ω"))
        self.assertEqual(self.values(records), {"Ωmega"})

    def test_sharp_s_does_not_match_double_s(self):
        records = self.store.query(StringFilter(contains_character="ß"))
        self.assertEqual(self.values(records), {"Straße"})

    def test_natural_language_letter_outside_ascii(self):
        records = self.store.query(interpret("strings containing the letter É"))
        self.assertEqual(self.values(records), {"CAFÉ", "école"})


class StringAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def create(self, value):
        return self.client.post("/strings", {"value": value}, format="json")

    def test_create_string(self):
        resp = self.create("hello world")
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["id"], HELLO_WORLD_SHA256)
        self.assertEqual(data["value"], "hello world")
        self.assertEqual(data["properties"]["length"], 11)
        self.assertEqual(data["properties"]["sha256_hash"], HELLO_WORLD_SHA256)
        self.assertEqual(data["properties"]["character_frequency_map"]["l"], 3)
        self.assertIn("created_at", data)

    def test_create_duplicate(self):
        self.assertEqual(self.create("twice").status_code, 201)
        resp = self.create("twice")
        self.assertEqual(resp.status_code, 409)
        self.assertIn("error", resp.json())

    def test_create_missing_value(self):
        resp = self.client.post("/strings", {}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_create_non_string_value(self):
        for bad in (123, True, ["a"], {"a": 1}, None):
            resp = self.create(bad)
            self.assertEqual(resp.status_code, 422, bad)
        self.assertEqual(StringRecord.objects.count(), 0)

    def test_create_keeps_whitespace(self):
        resp = self.create("  spaced out  ")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["value"], "  spaced out  ")
        self.assertEqual(resp.json()["properties"]["word_count"], 2)

    def test_retrieve_by_value(self):
        self.create("hello world")
        resp = self.client.get("/strings/" + quote("hello world"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], HELLO_WORLD_SHA256)

    def test_retrieve_value_with_slash(self):
        self.create("and/or")
        resp = self.client.get("/strings/and/or")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["value"], "and/or")

    def test_retrieve_missing(self):
        resp = self.client.get("/strings/missing")
        self.assertEqual(resp.status_code, 404)

    def test_delete(self):
        self.create("gone soon")
        resp = self.client.delete("/strings/" + quote("gone soon"))
        self.assertEqual(resp.status_code, 204)
        resp = self.client.delete("/strings/" + quote("gone soon"))
        self.assertEqual(resp.status_code, 404)

    def test_list_with_filters(self):
        for value in ("racecar", "level", "hello world"):
            self.create(value)
        resp = self.client.get("/strings", {"is_palindrome": "true", "min_length": "6"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["data"][0]["value"], "racecar")
        self.assertEqual(data["filters_applied"], {"is_palindrome": True, "min_length": 6})

    def test_list_without_filters(self):
        self.create("one")
        self.create("two")
        data = self.client.get("/strings").json()
        self.assertEqual(data["count"], 2)
        self.assertEqual(data["filters_applied"], {})

    def test_list_invalid_filter(self):
        resp = self.client.get("/strings", {"contains_character": "ab"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("details", resp.json())
        resp = self.client.get("/strings", {"min_length": "long"})
        self.assertEqual(resp.status_code, 400)

    def test_list_conflicting_filter(self):
        resp = self.client.get("/strings", {"min_length": "10", "max_length": "5"})
        self.assertEqual(resp.status_code, 422)

    def test_natural_language_query(self):
        for value in ("racecar", "level", "noon", "hello world"):
            self.create(value)
        resp = self.client.get(
            "/strings/filter-by-natural-language",
            {"query": "all single word palindromic strings longer than 4"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["count"], 2)
        self.assertEqual({d["value"] for d in data["data"]}, {"racecar", "level"})
        self.assertEqual(data["interpreted_query"]["original"],
                         "all single word palindromic strings longer than 4")
        self.assertEqual(data["interpreted_query"]["parsed_filters"],
                         {"word_count": 1, "is_palindrome": True, "min_length": 5})

    def test_natural_language_unparseable(self):
        resp = self.client.get("/strings/filter-by-natural-language", {"query": "tell me a joke"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["interpreted_query"]["parsed_filters"], {})

    def test_natural_language_conflict(self):
        resp = self.client.get(
            "/strings/filter-by-natural-language",
            {"query": "longer than 10 and shorter than 3"})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["interpreted_query"]["parsed_filters"],
                         {"min_length": 11, "max_length": 2})

    def test_natural_language_missing_query(self):
        resp = self.client.get("/strings/filter-by-natural-language")
        self.assertEqual(resp.status_code, 400)

    def test_contains_character_outside_ascii(self):
        for value in ("CAFÉ", "cafe"):
            self.create(value)
        data = self.client.get("/strings", {"contains_character": "é"}).json()
        self.assertEqual([d["value"] for d in data["data"]], ["CAFÉ"])

        resp = self.client.get(
            "/strings/filter-by-natural-language",
            {"query": "strings containing the letter é"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([d["value"] for d in resp.json()["data"]], ["CAFÉ"])
        self.assertEqual(resp.json()["interpreted_query"]["parsed_filters"],
                         {"contains_character": "é"})


class InfrastructureFailureTests(SimpleTestCase):

    def test_database_failure_is_opaque_500(self):
        store = mock.Mock(spec=StringStore)
        store.query.side_effect = DatabaseError("disk I/O error")
        view = StringAnalyzerView.as_view(store=store)
        request = APIRequestFactory().get("/strings")

        with self.assertLogs("string_analyzer.views", level="ERROR"):
            resp = view(request)

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.data, {"error": "Internal server error"})


class AnalyzeStringCommandTests(TestCase):

    def test_prints_analysis(self):
        out = StringIO()
        call_command("analyze_string", "hello world", stdout=out)
        payload = json.loads(out.getvalue())
        self.assertEqual(payload["id"], HELLO_WORLD_SHA256)
        self.assertEqual(payload["properties"]["word_count"], 2)
        self.assertEqual(StringRecord.objects.count(), 0)

    def test_store_option(self):
        call_command("analyze_string", "stored", "--store", stdout=StringIO())
        self.assertTrue(StringRecord.objects.filter(value="stored").exists())
        with self.assertRaises(CommandError):
            call_command("analyze_string", "stored", "--store", stdout=StringIO())

    def test_unknown_database_alias(self):
        with self.assertRaises(CommandError):
            call_command("analyze_string", "x", "--store", "--database", "missing", stdout=StringIO())

    def test_database_failure(self):
        with mock.patch.object(StringStore, "insert", side_effect=DatabaseError("locked")):
            with self.assertRaises(CommandError):
                call_command("analyze_string", "x", "--store", stdout=StringIO())

    def test_surrogate_argument(self):
        with self.assertRaises(CommandError):
            call_command("analyze_string", "\udcff", stdout=StringIO())
