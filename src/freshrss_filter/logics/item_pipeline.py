import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import List, Optional

from freshrss_filter.errors import ConfigurationError, RemediationError
from freshrss_filter.logics.progress import NullProgressReporter
from freshrss_filter.models import (
    FeedItem,
    ItemEvent,
    ProcessAction,
    RemediationMode,
    ReviewRecord,
    RunOutcome,
)
from freshrss_filter.protocols import Classifier, FeedSource, Labeler, ProgressReporter, ReviewStore
from freshrss_filter.utils.text import fingerprint

class ItemPipeline:
    """
    Classifies unread items and acts on advertisements, reviewing each item id at most once.
    """
    def __init__(
            self,
            feed_source: FeedSource, # Supplies unread items and applies remediation
            classifier: Classifier, # Classifies the review text of an item
            review_store: ReviewStore, # Remembers which items were reviewed
            threshold: float = 0.5, # Minimum confidence to act on an ad, inclusive
            remediation_mode: RemediationMode = RemediationMode.MARK_READ,
            dry_run: bool = False, # Identify ads without modifying items
            concurrency: int = 5, # Items processed simultaneously
            labeler: Optional[Labeler] = None, # Required for `RemediationMode.LABEL`
            spam_label: str = "Ads", # The label applied in `RemediationMode.LABEL`
            reporter: Optional[ProgressReporter] = None, # Observer of progress events
        ):
        if remediation_mode is RemediationMode.LABEL and labeler is None:
            raise ConfigurationError("Remediation mode \"label\" requires a labeler.")
        if concurrency < 1:
            raise ConfigurationError(f"Concurrency must be at least 1, got {concurrency}.")
        self.feed_source = feed_source
        self.classifier = classifier
        self.review_store = review_store
        self.threshold = threshold
        self.remediation_mode = remediation_mode
        self.dry_run = dry_run
        self.concurrency = concurrency
        self.labeler = labeler
        self.spam_label = spam_label
        self.reporter = reporter or NullProgressReporter()

    def run_once(self) -> RunOutcome:
        """
        Fetch every unread item and process the batch. A fetch failure propagates.
        """
        items = self.feed_source.fetch_unread_items()
        return self.run(items)

    def run(self, items: List[FeedItem]) -> RunOutcome:
        """
        Process a batch of items with bounded concurrency. Item failures are counted, never raised.
        """
        unique_items = list({item.id: item for item in items}.values())
        if len(unique_items) < len(items):
            logging.warning(f"Dropped {len(items) - len(unique_items)} duplicate items from the batch")
        items = unique_items

        outcome = RunOutcome(total=len(items))
        logging.info(f"Processing {len(items)} items, concurrency={self.concurrency}, dry_run={self.dry_run}")
        self._notify("run_started", len(items))

        if items:
            with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="item") as executor:
                futures = {executor.submit(self.handle_item, item): item for item in items}
                # Results are aggregated on this thread only, in completion order.
                for future in as_completed(futures):
                    item = futures[future]
                    try:
                        action = future.result()
                    except RemediationError as e:
                        logging.error(f"Item {item.id} \"{item.title}\" was reviewed but not remediated: {e}")
                        outcome.record_error()
                        event = ItemEvent(item_id=item.id, title=item.title, error=str(e))
                    except Exception as e:
                        logging.error(f"Item {item.id} \"{item.title}\" failed: {e}")
                        outcome.record_error()
                        event = ItemEvent(item_id=item.id, title=item.title, error=str(e))
                    else:
                        outcome.record(action)
                        event = ItemEvent(item_id=item.id, title=item.title, action=action)
                    self._notify("item_finished", event)

        logging.info(f"Run finished: {outcome.summary()}")
        self._notify("run_finished", outcome)
        return outcome

    def handle_item(self, item: FeedItem) -> ProcessAction:
        """
        Review a single item: dedup check, classify, persist verdict, then act.
        """
        if self.review_store.exists(item.id):
            logging.debug(f"Item {item.id} already reviewed, skipping")
            return ProcessAction.SKIPPED_EXISTS

        text = item.review_text
        verdict = self.classifier.classify(text)
        logging.debug(f"Item {item.id} verdict: is_ad={verdict.is_ad} confidence={verdict.confidence:.2f} reason={verdict.reason!r}")

        # The verdict is stored before acting so a failed action never causes a second classification.
        self.review_store.upsert(ReviewRecord(
            item_id=item.id,
            content_hash=fingerprint(text),
            is_ad=verdict.is_ad,
            confidence=verdict.confidence,
            reason=verdict.reason,
            reviewed_at=datetime.now(timezone.utc),
        ))

        if not (verdict.is_ad and verdict.confidence >= self.threshold):
            return ProcessAction.KEPT

        if self.dry_run:
            logging.warning(f"Dry run: item {item.id} \"{item.title}\" detected as ad ({verdict.confidence:.2f})")
            return ProcessAction.WOULD_ACT

        match self.remediation_mode:
            case RemediationMode.MARK_READ:
                self.feed_source.mark_read(item.id)
                return ProcessAction.MARKED_READ
            case RemediationMode.LABEL:
                self.labeler.add_label(item.id, self.spam_label)
                self.feed_source.mark_read(item.id)
                return ProcessAction.LABELED
            case _:
                self.feed_source.soft_delete(item.id)
                return ProcessAction.DELETED

    def _notify(self, method: str, *args):
        """
        Forward an event to the reporter. Reporter failures are logged and ignored.
        """
        try:
            getattr(self.reporter, method)(*args)
        except Exception as e:
            logging.warning(f"Progress reporter failed in {method}: {e}")
