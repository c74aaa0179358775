"""Tests for collection parameter registration and validation."""
from datetime import UTC, datetime

import pytest
from starlette.datastructures import QueryParams

from core.taxonomies import TaxonomyConfig
from schemas.story_params import get_collection_params, parse_collection_params
from services.exceptions import ValidationError

REGISTERED = get_collection_params()


def _parse(query: str) -> dict:
    return parse_collection_params(QueryParams(query), REGISTERED)


class TestGetCollectionParams:
    """Tests for the parameter registry."""

    def test__registers_standard_parameters(self) -> None:
        """Every listing parameter is described."""
        for name in (
            "context", "page", "per_page", "offset", "search", "after", "before",
            "author", "author_exclude", "include", "exclude", "menu_order", "order",
            "orderby", "parent", "parent_exclude", "slug", "status", "tax_relation",
            "_fields", "_web_stories_envelope",
        ):
            assert name in REGISTERED, name
            assert "description" in REGISTERED[name]

    def test__registers_visible_taxonomies_only(self) -> None:
        """Visible taxonomies get include/exclude parameters; hidden ones get none."""
        assert "web_story_category" in REGISTERED
        assert "web_story_category_exclude" in REGISTERED
        assert "web_story_tag" in REGISTERED
        assert "web_story_tag_exclude" in REGISTERED
        assert "web_story_vertical" not in REGISTERED

    def test__orderby_includes_story_author(self) -> None:
        """Author-name sorting is an allowed orderby value."""
        assert "story_author" in REGISTERED["orderby"]["enum"]
        assert REGISTERED["orderby"]["default"] == "date"

    def test__per_page_default_from_configuration(self) -> None:
        """The per_page default follows the configured value."""
        params = get_collection_params(per_page_default=25, per_page_max=50)

        assert params["per_page"]["default"] == 25
        assert "50" in params["per_page"]["description"]

    def test__envelope_defaults_to_false(self) -> None:
        """Envelope mode is opt-in."""
        assert REGISTERED["_web_stories_envelope"]["type"] == "boolean"
        assert REGISTERED["_web_stories_envelope"]["default"] is False


class TestParseCollectionParams:
    """Tests for query string validation."""

    def test__defaults_only(self) -> None:
        """With no query string, only declared defaults are present."""
        params = _parse("")

        assert params == {
            "context": "view",
            "page": 1,
            "order": "desc",
            "orderby": "date",
            "status": ["publish"],
            "_web_stories_envelope": False,
        }

    def test__absent_parameters_stay_absent(self) -> None:
        """Filters that were not sent are not in the result."""
        params = _parse("search=cats")

        assert params["search"] == "cats"
        for name in ("author", "include", "per_page", "after", "web_story_tag"):
            assert name not in params

    def test__comma_separated_lists(self) -> None:
        """List values may be comma separated."""
        params = _parse("author=1,2,3&slug=a,b")

        assert params["author"] == [1, 2, 3]
        assert params["slug"] == ["a", "b"]

    def test__repeated_and_bracketed_lists(self) -> None:
        """List values may be repeated, with or without a [] suffix."""
        params = _parse("include[]=4&include[]=5&exclude=6&exclude=7")

        assert params["include"] == [4, 5]
        assert params["exclude"] == [6, 7]

    def test__status_list(self) -> None:
        """Several statuses may be requested at once."""
        params = _parse("status=publish,draft")

        assert params["status"] == ["publish", "draft"]

    @pytest.mark.parametrize("query", ["status=", "status=,", "status[]="])
    def test__empty_status_falls_back_to_default(self, query: str) -> None:
        """A status parameter without values is treated as absent."""
        assert _parse(query)["status"] == ["publish"]

    def test__empty_lists_are_absent(self) -> None:
        """Empty list values do not turn into match-nothing filters."""
        params = _parse("include=&slug=,&author_exclude=")

        for name in ("include", "slug", "author_exclude"):
            assert name not in params

    def test__orderby_include_requires_include(self) -> None:
        """Positional ordering needs the list it orders by."""
        assert _parse("orderby=include&include=3,1")["orderby"] == "include"
        assert _parse("orderby=include_slugs&slug=b,a")["orderby"] == "include_slugs"

        for query in ("orderby=include", "orderby=include_slugs", "orderby=include_slugs&include=1"):  # noqa: E501
            with pytest.raises(ValidationError) as exc_info:
                _parse(query)
            assert set(exc_info.value.params) == {"orderby"}

    def test__status_any(self) -> None:
        """The any shorthand is accepted."""
        assert _parse("status=any")["status"] == ["any"]

    def test__datetimes_are_normalized_to_utc(self) -> None:
        """Naive datetimes are taken as UTC; offsets are preserved as aware values."""
        params = _parse("after=2024-01-01T00:00:00&before=2024-02-01T10:00:00%2B02:00")

        assert params["after"] == datetime(2024, 1, 1, tzinfo=UTC)
        assert params["before"] == datetime(2024, 2, 1, 8, 0, tzinfo=UTC)

    def test__per_page_above_maximum_is_accepted(self) -> None:
        """The page size ceiling is applied later by clamping, not by rejecting."""
        assert _parse("per_page=1000")["per_page"] == 1000

    def test__envelope_flag(self) -> None:
        """The envelope flag parses as a boolean."""
        assert _parse("_web_stories_envelope=true")["_web_stories_envelope"] is True
        assert _parse("_web_stories_envelope=0")["_web_stories_envelope"] is False

    def test__fields(self) -> None:
        """_fields is a list of field names."""
        assert _parse("_fields=id,title")["_fields"] == ["id", "title"]

    def test__taxonomy_terms(self) -> None:
        """Taxonomy parameters parse as term id lists."""
        params = _parse("web_story_category=1,2&web_story_tag_exclude=3&tax_relation=OR")

        assert params["web_story_category"] == [1, 2]
        assert params["web_story_tag_exclude"] == [3]
        assert params["tax_relation"] == "OR"

    def test__unknown_parameters_are_ignored(self) -> None:
        """Unregistered names never reach the result."""
        params = _parse("foo=bar&web_story_vertical=1")

        assert "foo" not in params
        assert "web_story_vertical" not in params

    def test__custom_taxonomies(self) -> None:
        """Taxonomy parameters follow the injected taxonomy list."""
        taxonomies = (TaxonomyConfig(name="genre", rest_base="genres"),)
        registered = get_collection_params(taxonomies=taxonomies)

        params = parse_collection_params(QueryParams("genres=9"), registered, taxonomies)

        assert params["genres"] == [9]

    @pytest.mark.parametrize(
        ("query", "bad_param"),
        [
            ("page=0", "page"),
            ("page=abc", "page"),
            ("per_page=0", "per_page"),
            ("offset=-1", "offset"),
            ("author=abc", "author"),
            ("order=sideways", "order"),
            ("orderby=popularity", "orderby"),
            ("status=trash", "status"),
            ("context=embed", "context"),
            ("after=yesterday", "after"),
            ("tax_relation=XOR", "tax_relation"),
            ("web_story_category=news", "web_story_category"),
        ],
    )
    def test__malformed_values_raise_validation_error(
        self, query: str, bad_param: str,
    ) -> None:
        """Malformed values are reported by parameter name."""
        with pytest.raises(ValidationError) as exc_info:
            _parse(query)

        assert bad_param in exc_info.value.params

    def test__reports_every_bad_parameter(self) -> None:
        """All malformed parameters are reported together."""
        with pytest.raises(ValidationError) as exc_info:
            _parse("page=0&order=up&web_story_tag=x")

        assert set(exc_info.value.params) == {"page", "order", "web_story_tag"}
