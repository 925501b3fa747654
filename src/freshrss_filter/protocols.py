"""Defines protocols for dependency injection and mocking the pipeline collaborators."""

from typing import List, Protocol, Sequence

from freshrss_filter.models import FeedItem, ItemEvent, ItemID, ReviewRecord, RunOutcome, Verdict


class FeedSource(Protocol):
    """Protocol for the feed aggregator that owns the unread items."""

    def list_unread_ids(self) -> List[ItemID]:
        """Return the identifiers of all unread items."""
        ...

    def fetch(self, ids: Sequence[ItemID]) -> List[FeedItem]:
        """Return the items with the given identifiers (at most 50 per call)."""
        ...

    def fetch_unread_items(self) -> List[FeedItem]:
        """Return every unread item, fetched in chunks."""
        ...

    def mark_read(self, item_id: ItemID):
        """Mark an item as read."""
        ...

    def soft_delete(self, item_id: ItemID):
        """Remove an item from the unread list without destroying it."""
        ...


class Labeler(Protocol):
    """Protocol for the optional labeling collaborator."""

    def add_label(self, item_id: ItemID, label: str):
        """Attach a label to an item."""
        ...


class Classifier(Protocol):
    """Protocol for the advertisement classifier."""

    def classify(self, text: str) -> Verdict:
        """Classify the review text of an item."""
        ...


class ReviewStore(Protocol):
    """Protocol for the durable record of reviewed items."""

    def exists(self, item_id: ItemID) -> bool:
        """Check if an item has already been reviewed."""
        ...

    def upsert(self, record: ReviewRecord):
        """Insert or overwrite the review record of an item."""
        ...


class ProgressReporter(Protocol):
    """Protocol for observers of pipeline progress."""

    def run_started(self, total: int):
        """Called once before any item is processed."""
        ...

    def item_finished(self, event: ItemEvent):
        """Called after each item reached its outcome or failed."""
        ...

    def run_finished(self, outcome: RunOutcome):
        """Called once after every item finished."""
        ...

    def close(self):
        """Release the display."""
        ...
