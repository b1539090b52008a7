"""
Tests for list option normalization.

Run with: pytest src/tablegate/model/options_test.py -v
"""

import pytest

from tablegate.model.options import ListOptions, direction, format_list_options, parse_order


def escape_id(name: str) -> str:
    return f"`{name}`"


class TestParseOrder:
    """Tests for parse_order()"""

    @pytest.mark.parametrize(
        "order,expected",
        [
            ("id:desc", [("id", "desc")]),
            ("id:asc,created_at:desc", [("id", "asc"), ("created_at", "desc")]),
            ([["id", "desc"]], [("id", "desc")]),
            ([("id", "asc"), ("name", "desc")], [("id", "asc"), ("name", "desc")]),
            ([["id"]], [("id", "asc")]),
            (None, []),
            ("", []),
        ],
    )
    def test_parse_order(self, order, expected):
        assert parse_order(order) == expected

    def test_string_form_matches_pair_form(self):
        assert parse_order("id:desc") == parse_order([["id", "desc"]])

    def test_malformed_string_items_are_skipped(self):
        assert parse_order("id,name:desc,a:b:c") == [("name", "desc")]


class TestDirection:
    @pytest.mark.parametrize(
        "value,expected",
        [("desc", "DESC"), ("DESC", "DESC"), ("Desc", "DESC"), ("asc", "ASC"), ("down", "ASC"), (None, "ASC")],
    )
    def test_only_desc_is_descending(self, value, expected):
        assert direction(value) == expected


class TestNormalize:
    """Tests for ListOptions.normalize()"""

    def test_defaults(self):
        opts = ListOptions.normalize(None, default_limit=20)

        assert opts == ListOptions(order=[], limit=20, offset=0)

    @pytest.mark.parametrize("limit", [0, -1, None, "abc", float("nan")])
    def test_non_positive_limit_uses_default(self, limit):
        # limit=0 is not "no rows" nor "no limit": it means the default page size
        opts = ListOptions.normalize({"limit": limit}, default_limit=20)

        assert opts.limit == 20

    @pytest.mark.parametrize("offset", [0, -5, None, "abc"])
    def test_non_positive_offset_is_zero(self, offset):
        opts = ListOptions.normalize({"offset": offset}, default_limit=20)

        assert opts.offset == 0

    def test_numeric_strings_are_accepted(self):
        opts = ListOptions.normalize({"limit": "5", "offset": "10"}, default_limit=20)

        assert opts.limit == 5
        assert opts.offset == 10


class TestTail:
    """Tests for ListOptions.tail()"""

    def test_limit_only(self):
        opts = ListOptions(limit=20, offset=0)

        assert opts.tail(escape_id) == " LIMIT 20 OFFSET 0"

    def test_order_and_pagination(self):
        opts = ListOptions(order=[("id", "desc"), ("name", "whatever")], limit=5, offset=10)

        assert opts.tail(escape_id) == " ORDER BY `id` DESC, `name` ASC LIMIT 5 OFFSET 10"


class TestFormatListOptions:
    """Tests for format_list_options()"""

    def test_defaults_to_primary_ascending(self):
        result = format_list_options({}, fields={"id", "name"}, primary="id", default_limit=10)

        assert result == {"limit": 10, "offset": 0, "order": [("id", "asc")]}

    def test_unknown_fields_are_dropped(self):
        result = format_list_options(
            {"order": "name:desc,password:asc", "limit": "3", "offset": "6"},
            fields={"id", "name"},
        )

        assert result == {"limit": 3, "offset": 6, "order": [("name", "desc")]}

    def test_only_unknown_fields_falls_back_to_primary(self):
        result = format_list_options({"order": "password:asc"}, fields={"uid"}, primary="uid")

        assert result["order"] == [("uid", "asc")]
