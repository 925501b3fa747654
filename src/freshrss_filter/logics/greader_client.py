import logging
from typing import Optional

import requests

from freshrss_filter.errors import RemediationError
from freshrss_filter.models import ItemID

class GReaderClient:
    """
    Labeling collaborator backed by the Google Reader API of a FreshRSS instance.
    """
    def __init__(
            self,
            base_url: str, # The base URL of the FreshRSS instance
            username: str, # The Google Reader API username
            password: str, # The Google Reader API password
            user_agent: str = "freshrss-filter/0.1",
            timeout: float = 30.0, # HTTP timeout in seconds
            *,
            session: Optional[requests.Session] = None # if provided, user_agent will be ignored
        ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": user_agent})
        self.session = session

    def add_label(self, item_id: ItemID, label: str):
        """
        Tag the item with `user/-/label/<label>`. The label is created if missing.
        """
        url = f"{self.base_url}/api/greader.php/reader/api/0/edit-tag"
        try:
            response = self.session.post(
                url,
                data={"i": str(item_id), "a": f"user/-/label/{label}"},
                auth=(self.username, self.password),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemediationError(f"Labeling item {item_id} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise RemediationError(f"Labeling item {item_id} failed", status_code=response.status_code)
        logging.info(f"Labeled item {item_id} as \"{label}\"")
