import json

import pytest

from webhook_proxy.pagination.directive import PaginationDirective
from webhook_proxy.pagination.envelope import (
    OUTCOME_NO_ARRAY,
    OUTCOME_NOT_JSON,
    OUTCOME_PAGINATED,
    PaginationMeta,
    paginate,
    reshape_body,
)
from webhook_proxy.pagination.locator import ArrayTarget, locate_array


def _directive(page, page_size):
    return PaginationDirective(enabled=True, page=page, page_size=page_size)


class TestPaginationMeta:
    @pytest.mark.parametrize(
        "total,size,pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (5, 2, 3)]
    )
    def test_total_pages(self, total, size, pages):
        assert PaginationMeta.build(_directive(1, size), total).total_pages == pages

    def test_zero_page_size_yields_zero_pages(self):
        assert PaginationMeta.build(_directive(1, 0), 10).total_pages == 0

    def test_wire_keys(self):
        meta = PaginationMeta.build(_directive(2, 5), 12).to_dict()

        assert meta == {"page": 2, "pageSize": 5, "totalItems": 12, "totalPages": 3}


class TestPaginate:
    def test_data_key(self):
        root = {"data": [1, 2, 3, 4, 5]}

        result = paginate(locate_array(root), _directive(2, 2), root)

        assert result == {
            "data": [3, 4],
            "pagination": {"page": 2, "pageSize": 2, "totalItems": 5, "totalPages": 3},
        }

    def test_root_array_is_wrapped(self):
        root = [1, 2, 3]

        result = paginate(locate_array(root), _directive(1, 2), root)

        assert result == {
            "data": [1, 2],
            "pagination": {"page": 1, "pageSize": 2, "totalItems": 3, "totalPages": 2},
        }

    def test_string_encoded_array(self):
        root = {"items": "[1,2,3,4]"}

        result = paginate(locate_array(root), _directive(1, 3), root)

        assert result == {
            "items": "[1,2,3]",
            "pagination": {"page": 1, "pageSize": 3, "totalItems": 4, "totalPages": 2},
        }

    def test_out_of_bounds_page_is_empty(self):
        root = {"data": [1, 2, 3]}

        result = paginate(locate_array(root), _directive(9, 2), root)

        assert result["data"] == []
        assert result["pagination"]["totalPages"] == 2

    def test_siblings_are_kept(self):
        root = {"status": "ok", "body": {"count": 4, "rows": [1, 2, 3, 4]}, "tail": None}

        result = paginate(locate_array(root), _directive(2, 3), root)

        assert result["status"] == "ok"
        assert result["tail"] is None
        assert result["body"] == {"count": 4, "rows": [4]}

    def test_upstream_pagination_key_is_overwritten_in_place(self):
        root = {"pagination": {"cursor": "abc"}, "data": [1, 2]}

        result = paginate(locate_array(root), _directive(1, 1), root)

        assert list(result.keys()) == ["pagination", "data"]
        assert result["pagination"]["totalItems"] == 2

    def test_full_page_is_identity_plus_meta(self):
        root = {"a": {"b": 1}, "entries": [{"id": 1}, {"id": 2}]}

        result = paginate(locate_array(root), _directive(1, 100), root)
        result.pop("pagination")

        assert result == root

    def test_non_object_rebuild_falls_back_to_data_envelope(self):
        class ScalarTarget(ArrayTarget):
            @property
            def root_is_array(self):
                return False

        target = ScalarTarget(data=[1, 2, 3])

        result = paginate(target, _directive(1, 2), [1, 2, 3])

        assert result == {
            "data": [1, 2],
            "pagination": {"page": 1, "pageSize": 2, "totalItems": 3, "totalPages": 2},
        }


class TestReshapeBody:
    def test_paginates_json(self):
        result = reshape_body('{"data": [1, 2, 3]}', _directive(1, 1))

        assert result.outcome == OUTCOME_PAGINATED
        assert result.paginated
        assert result.payload["data"] == [1]

    @pytest.mark.parametrize("text", ["", "<html>oops</html>", "{broken", "NaN"])
    def test_invalid_json_is_skipped(self, text):
        result = reshape_body(text, _directive(1, 1))

        assert result.outcome == OUTCOME_NOT_JSON
        assert result.payload is None
        assert not result.paginated

    @pytest.mark.parametrize("text", ['{"a": 1}', '"just text"', "42", "null"])
    def test_json_without_array_is_skipped(self, text):
        result = reshape_body(text, _directive(1, 1))

        assert result.outcome == OUTCOME_NO_ARRAY
        assert result.payload is None

    def test_body_is_encoded_payload(self):
        result = reshape_body('{"data": ["é", 2, 3]}', _directive(1, 2))

        assert result.body == (
            '{"data":["é",2],'
            '"pagination":{"page":1,"pageSize":2,"totalItems":3,"totalPages":2}}'
        ).encode("utf-8")
        assert json.loads(result.body) == result.payload

    def test_deeply_nested_body_is_skipped(self):
        result = reshape_body("[" * 100000 + "]" * 100000, _directive(1, 1))

        assert result.outcome == OUTCOME_NOT_JSON
        assert result.body is None

    def test_deeply_nested_string_field_is_not_an_array(self):
        text = json.dumps({"data": "[" * 100000 + "]" * 100000})

        result = reshape_body(text, _directive(1, 1))

        assert result.outcome == OUTCOME_NO_ARRAY

    @pytest.mark.parametrize(
        "text", ['{"data": [1e400, 2, 3]}', "[-1e400]", '{"items": [1, 2], "max": 1E999}']
    )
    def test_overflowing_numbers_are_skipped(self, text):
        result = reshape_body(text, _directive(1, 2))

        assert result.outcome == OUTCOME_NOT_JSON
        assert result.payload is None

    def test_lone_surrogates_are_escaped(self):
        result = reshape_body('{"data": ["\\ud800", "x", "y"]}', _directive(1, 2))

        assert result.paginated
        assert result.body.startswith(b'{"data":["\\ud800","x"]')
        assert json.loads(result.body)["data"] == ["\ud800", "x"]

    def test_lone_surrogates_in_string_encoded_array(self):
        text = json.dumps({"items": json.dumps(["\udfff", "a"])})

        result = reshape_body(text, _directive(1, 1))

        assert result.paginated
        assert json.loads(json.loads(result.body)["items"]) == ["\udfff"]
