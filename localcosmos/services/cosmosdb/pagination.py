"""
Continuation-token pagination for query results.

The query engine always produces the full result list; this module slices it
into pages. Continuation tokens are opaque to callers: URL-safe base64 of a
small JSON object holding the offset of the next page, so no server-side
state is kept between pages.

Author: LocalCosmos Team
"""

import base64
import binascii
import json
import logging
from typing import Any, List, Optional, Sequence, Tuple

DEFAULT_MAX_ITEM_COUNT = 100


def encode_continuation_token(offset: int) -> str:
    payload = json.dumps({"offset": offset}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii")


def decode_continuation_token(token: str) -> Optional[int]:
    """
    Decode a continuation token.

    Returns:
        Offset of the next page, or None if the token is unreadable
    """
    try:
        payload = json.loads(base64.urlsafe_b64decode(token.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError):
        return None

    if not isinstance(payload, dict):
        return None
    offset = payload.get("offset")
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        return None
    return offset


class PaginationManager:
    """
    Slices full query results into pages.

    An unreadable token restarts at the first page. No token is returned
    for the last page.
    """

    def __init__(
        self,
        default_max_item_count: int = DEFAULT_MAX_ITEM_COUNT,
        logger: Optional[logging.Logger] = None,
    ):
        self.default_max_item_count = default_max_item_count
        self.logger = logger or logging.getLogger(__name__)

    def get_page(
        self,
        results: Sequence[Any],
        max_item_count: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> Tuple[List[Any], Optional[str]]:
        """
        Get one page of results.

        Args:
            results: Full result list
            max_item_count: Page size; None or a non-positive value uses the default
            continuation_token: Token from the previous page

        Returns:
            Tuple of (page items, next continuation token or None)
        """
        page_size = max_item_count if max_item_count and max_item_count > 0 else self.default_max_item_count

        start = 0
        if continuation_token:
            offset = decode_continuation_token(continuation_token)
            if offset is None:
                self.logger.warning("Invalid continuation token, restarting from the first page")
            else:
                start = offset

        total = len(results)
        end = min(start + page_size, total)
        page = list(results[start:end])

        next_token = encode_continuation_token(end) if end < total else None
        return page, next_token
