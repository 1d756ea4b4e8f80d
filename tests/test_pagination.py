import base64
import json

import pytest

from mcp_engine.core.pagination import CursorPaginator, paginate


def _cursor(payload) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


class TestCursorPaginator:
    def test_visits_every_item_once(self):
        items = list(range(23))
        pages, cursor = [], None
        while True:
            page = CursorPaginator(items, 10, cursor).paginate("items")
            pages.append(page["items"])
            cursor = page.get("nextCursor")
            if cursor is None:
                break

        assert [len(p) for p in pages] == [10, 10, 3]
        assert [item for p in pages for item in p] == items

    def test_cursor_format(self):
        cursor = CursorPaginator.encode_cursor(10)
        assert json.loads(base64.b64decode(cursor)) == {"offset": 10}
        assert base64.b64decode(cursor) == b'{"offset":10}'

    def test_no_next_cursor_on_exact_boundary(self):
        page = CursorPaginator(list(range(10)), 10).paginate("tools")
        assert page == {"tools": list(range(10))}

    @pytest.mark.parametrize("cursor", [
        None,
        "",
        "%%%",
        "not-base64!!!",
        _cursor([1, 2]),
        _cursor({"offset": -5}),
        _cursor({"offset": "3"}),
        _cursor({"offset": True}),
        _cursor({"page": 2}),
        base64.b64encode(b"\xff\xfe").decode("ascii"),
    ])
    def test_bad_cursor_restarts_from_zero(self, cursor):
        page = CursorPaginator(list(range(5)), 2, cursor).paginate("items")
        assert page["items"] == [0, 1]

    def test_deeply_nested_cursor_restarts_from_zero(self):
        cursor = base64.b64encode(b"[" * 100000 + b"]" * 100000).decode("ascii")
        assert CursorPaginator.decode_cursor(cursor) == 0

    def test_offset_past_end(self):
        page = CursorPaginator(list(range(5)), 2, CursorPaginator.encode_cursor(100)).paginate("items")
        assert page == {"items": []}

    def test_per_page_must_be_positive(self):
        with pytest.raises(ValueError):
            CursorPaginator([1, 2], 0)

    def test_module_helper(self):
        page = paginate(["a", "b", "c"], 2, key="prompts")
        assert page["prompts"] == ["a", "b"]
        assert CursorPaginator.decode_cursor(page["nextCursor"]) == 2
