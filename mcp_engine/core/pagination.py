import base64
import json
import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CursorPaginator(Generic[T]):
    """Slices an ordered sequence into pages addressed by opaque cursors.

    A cursor is base64 of ``{"offset": n}``. Anything that does not decode to a
    non-negative integer offset restarts the listing from the first item, so a
    stale or tampered cursor never fails a list request.
    """

    def __init__(self, items: Sequence[T], per_page: int, cursor: Optional[str] = None):
        if per_page < 1:
            raise ValueError(f"per_page must be at least 1 (got {per_page})")
        self.items = list(items)
        self.per_page = per_page
        self.cursor = cursor

    def paginate(self, key: str = "items") -> Dict[str, Any]:
        offset = self.offset
        end = offset + self.per_page

        result: Dict[str, Any] = {key: self.items[offset:end]}
        if end < len(self.items):
            result["nextCursor"] = self.encode_cursor(end)
        return result

    @property
    def offset(self) -> int:
        return self.decode_cursor(self.cursor)

    @staticmethod
    def encode_cursor(offset: int) -> str:
        payload = json.dumps({"offset": offset}, separators=(",", ":"))
        return base64.b64encode(payload.encode("utf-8")).decode("ascii")

    @staticmethod
    def decode_cursor(cursor: Optional[str]) -> int:
        if not cursor or not isinstance(cursor, str):
            return 0

        try:
            decoded = base64.b64decode(cursor).decode("utf-8")
            data = json.loads(decoded) if decoded else None
        except (ValueError, RecursionError):
            logger.debug(f"Ignoring undecodable cursor: {cursor!r}")
            return 0

        if not isinstance(data, dict):
            return 0
        offset = data.get("offset")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            return 0
        return offset


def paginate(items: List[T], per_page: int, cursor: Optional[str] = None, key: str = "items") -> Dict[str, Any]:
    return CursorPaginator(items, per_page, cursor).paginate(key)
