import logging
import signal
import sys
import threading
from typing import List, Optional

from freshrss_filter.config import load_config, parse_cli_arguments
from freshrss_filter.errors import FilterError
from freshrss_filter.logging_config import setup_logging
from freshrss_filter.logics.fever_client import FeverClient
from freshrss_filter.logics.greader_client import GReaderClient
from freshrss_filter.logics.item_pipeline import ItemPipeline
from freshrss_filter.logics.openai_classifier import OpenAIClassifier
from freshrss_filter.logics.progress import LoggingProgressReporter, RunStatus
from freshrss_filter.logics.review_store import ReviewStore
from freshrss_filter.logics.run_coordinator import RunCoordinator
from freshrss_filter.models import AppConfig, RunOutcome

class Main:
    """
    Main class for the FreshRSS filter application.
    """
    def __init__(
            self,
            config: AppConfig,
            ):
        self.config = config
        self.status = RunStatus()
        self.reporter = LoggingProgressReporter(status=self.status)
        self.review_store = ReviewStore(config.database.path)

        freshrss = config.freshrss
        fever = FeverClient(
            base_url=freshrss.base_url,
            api_key=freshrss.fever_api_key,
            user_agent=freshrss.user_agent,
            timeout=freshrss.request_timeout,
        )
        labeler = None
        if freshrss.labeling_enabled:
            labeler = GReaderClient(
                base_url=freshrss.base_url,
                username=freshrss.greader_username,
                password=freshrss.greader_password,
                user_agent=freshrss.user_agent,
                timeout=freshrss.request_timeout,
            )
        classifier = OpenAIClassifier(
            api_key=config.openai.api_key,
            model=config.openai.model,
            system_prompt=config.openai.system_prompt,
            api_base=config.openai.api_base,
            temperature=config.openai.temperature,
            max_tokens=config.openai.max_tokens,
        )
        self.pipeline = ItemPipeline(
            feed_source=fever,
            classifier=classifier,
            review_store=self.review_store,
            threshold=config.openai.threshold,
            remediation_mode=config.remediation_mode,
            dry_run=config.dry_run,
            concurrency=config.concurrency,
            labeler=labeler,
            spam_label=freshrss.spam_label,
            reporter=self.reporter,
        )

    def run_once(self) -> RunOutcome:
        """
        Run the pipeline a single time.
        """
        return self.pipeline.run_once()

    def run_scheduled(self, stop_event: threading.Event):
        """
        Run the pipeline on the configured cron schedule until `stop_event` is set.
        """
        coordinator = RunCoordinator()
        coordinator.schedule(self.config.scheduler.cron, self.pipeline.run_once, name="filter")
        coordinator.start()
        try:
            while not stop_event.wait(timeout=1.0):
                pass
        finally:
            logging.info("Shutting down")
            coordinator.shutdown(wait=True)

    def close(self):
        """
        Release the display and the review store.
        """
        self.reporter.close()
        self.review_store.close()

def install_signal_handlers(stop_event: threading.Event):
    """
    Set `stop_event` on SIGINT or SIGTERM.
    """
    def handle_signal(signum, _frame):
        logging.info(f"Received {signal.Signals(signum).name}")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

def main(argv: Optional[List[str]] = None) -> int:
    cli_args = parse_cli_arguments(argv)
    setup_logging(cli_args.verbose)
    try:
        config = load_config(cli_args)
        app = Main(config=config)
    except (FilterError, ValueError) as e:
        logging.error(f"Startup failed: {e}")
        return 1

    try:
        if cli_args.once:
            app.run_once()
        else:
            stop_event = threading.Event()
            install_signal_handlers(stop_event)
            app.run_scheduled(stop_event)
    except (FilterError, ValueError) as e:
        logging.error(f"Run failed: {e}")
        return 1
    finally:
        app.close()
    return 0

if __name__ == "__main__":
    sys.exit(main())
