import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from pydantic import ValidationError

from freshrss_filter.errors import FetchError, FilterError, RemediationError
from freshrss_filter.models import FeedItem, ItemID

# Maximum number of ids per `items&with_ids` request.
FETCH_CHUNK_SIZE = 50

class FeverClient:
    """
    Feed source backed by the Fever API of a FreshRSS instance.
    """
    def __init__(
            self,
            base_url: str, # The base URL of the FreshRSS instance
            api_key: str, # The Fever API key
            user_agent: str = "freshrss-filter/0.1",
            timeout: float = 30.0, # HTTP timeout in seconds
            *,
            session: Optional[requests.Session] = None # if provided, user_agent will be ignored
        ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": user_agent})
        self.session = session

    def _post(
            self,
            query: str, # Query string appended after `api`
            error_type: type[FilterError], # The error raised on failure
        ) -> Dict[str, Any]:
        """
        Send an authenticated Fever request and return the decoded JSON body.
        """
        url = f"{self.base_url}/api/fever.php?api"
        if query:
            url += f"&{query}"
        try:
            response = self.session.post(
                url,
                data={"api_key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise error_type(f"Fever request \"{query}\" failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise error_type(f"Fever request \"{query}\" failed", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise error_type(f"Fever request \"{query}\" returned invalid JSON") from e
        if not isinstance(body, dict):
            raise error_type(f"Fever request \"{query}\" returned unexpected payload")
        return body

    def list_unread_ids(self) -> List[ItemID]:
        """
        Get the ids of all unread items.
        """
        body = self._post("unread_item_ids", FetchError)
        ids_str = body.get("unread_item_ids") or ""
        ids = []
        for fragment in str(ids_str).split(","):
            fragment = fragment.strip()
            if fragment.isdigit():
                ids.append(fragment)
        logging.info(f"Found {len(ids)} unread items")
        return ids

    def fetch(self, ids: Sequence[ItemID]) -> List[FeedItem]:
        """
        Get the items with the given ids.
        """
        if not ids:
            return []
        with_ids = ",".join(str(item_id) for item_id in ids)
        body = self._post(f"items&with_ids={with_ids}", FetchError)
        try:
            return [FeedItem.model_validate(raw_item) for raw_item in body.get("items") or []]
        except ValidationError as e:
            raise FetchError(f"Invalid item in Fever response: {e}") from e

    def fetch_unread_items(self) -> List[FeedItem]:
        """
        Get every unread item, fetched in chunks of `FETCH_CHUNK_SIZE` ids.
        """
        ids = self.list_unread_ids()
        items: List[FeedItem] = []
        for start in range(0, len(ids), FETCH_CHUNK_SIZE):
            chunk = ids[start:start + FETCH_CHUNK_SIZE]
            logging.debug(f"Fetching {len(chunk)} items")
            items.extend(self.fetch(chunk))
        logging.info(f"Fetched {len(items)} unread items")
        return items

    def mark_read(self, item_id: ItemID):
        """
        Mark the item as read.
        """
        self._post(f"mark=item&as=read&id={item_id}", RemediationError)
        logging.info(f"Marked item {item_id} as read")

    def soft_delete(self, item_id: ItemID):
        """
        Soft delete the item. The Fever API cannot delete, so the item is marked as read.
        """
        self.mark_read(item_id)
