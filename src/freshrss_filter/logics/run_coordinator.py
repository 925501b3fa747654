import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

from croniter import croniter

# A unit of work fired by the coordinator.
Job = Callable[[], None]

def cron_iter(cron_expression: str, start: datetime) -> croniter:
    """
    Build a cron iterator. Six-field expressions carry the seconds first, e.g. `0 */10 * * * *`.

    Raises:
        ValueError: If the expression is invalid.
    """
    fields = cron_expression.split()
    return croniter(
        cron_expression,
        start,
        ret_type=datetime,
        second_at_beginning=len(fields) == 6,
    )

def next_fire_time(cron_expression: str, after: datetime) -> datetime:
    """
    Get the first instant strictly after `after` matching the expression.
    """
    return cron_iter(cron_expression, after).get_next(datetime)

class SingleFlightJob:
    """
    Wraps a job so that at most one invocation runs at a time.

    An invocation arriving while another one runs is skipped, not queued.
    """
    def __init__(self, job: Job, name: str = "job"):
        self.job = job
        self.name = name
        self._running = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running.locked()

    def __call__(self) -> bool:
        """
        Run the job unless it is already running.

        Returns:
            bool: True if the job ran, False if the invocation was skipped.
        """
        if not self._running.acquire(blocking=False):
            logging.warning(f"Skipping \"{self.name}\": previous run still in progress")
            return False
        try:
            self.job()
        except Exception:
            logging.exception(f"Job \"{self.name}\" failed")
        finally:
            self._running.release()
        return True

class RunCoordinator:
    """
    Fires jobs on cron schedules from a single scheduling thread.

    Every firing runs in its own thread; `SingleFlightJob` keeps runs of the same job from overlapping.
    """
    def __init__(
            self,
            clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc), # Current time, timezone aware
        ):
        self.clock = clock
        self._schedules: List[tuple[str, SingleFlightJob]] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._in_flight: Set[threading.Thread] = set()
        self._in_flight_lock = threading.Lock()

    def schedule(self, cron_expression: str, job: Job, name: Optional[str] = None) -> SingleFlightJob:
        """
        Register a job to fire at every instant matching the cron expression.

        Raises:
            ValueError: If the expression is invalid.
        """
        if self._thread is not None:
            raise RuntimeError("Jobs must be scheduled before the coordinator starts")
        # Validate early so a bad expression fails at startup.
        cron_iter(cron_expression, self.clock())
        single_flight = SingleFlightJob(job, name=name or getattr(job, "__name__", "job"))
        self._schedules.append((cron_expression, single_flight))
        logging.info(f"Scheduled \"{single_flight.name}\" with cron \"{cron_expression}\"")
        return single_flight

    def start(self):
        """
        Start firing scheduled jobs.
        """
        if self._thread is not None:
            raise RuntimeError("Coordinator already started")
        self._thread = threading.Thread(target=self._loop, name="scheduler", daemon=True)
        self._thread.start()
        logging.info("Scheduler started")

    def shutdown(self, wait: bool = True):
        """
        Stop firing jobs. With `wait`, block until in-flight runs finish.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        if wait:
            with self._in_flight_lock:
                in_flight = list(self._in_flight)
            if in_flight:
                logging.info(f"Waiting for {len(in_flight)} running job(s) to finish")
            for thread in in_flight:
                thread.join()
        logging.info("Scheduler stopped")

    def _loop(self):
        now = self.clock()
        iterators = [cron_iter(cron_expression, now) for cron_expression, _ in self._schedules]
        next_times = [iterator.get_next(datetime) for iterator in iterators]
        if not next_times:
            return

        while not self._stop.is_set():
            due = min(next_times)
            logging.debug(f"Next run at {due.isoformat()}")
            delay = (due - self.clock()).total_seconds()
            if delay > 0 and self._stop.wait(delay):
                break

            now = self.clock()
            for index, (_, job) in enumerate(self._schedules):
                if next_times[index] > now:
                    continue
                self._dispatch(job)
                # Missed instants are dropped, not replayed.
                while next_times[index] <= now:
                    next_times[index] = iterators[index].get_next(datetime)

    def _dispatch(self, job: SingleFlightJob):
        thread = threading.Thread(target=self._run, args=(job,), name=f"job-{job.name}")
        with self._in_flight_lock:
            self._in_flight.add(thread)
        thread.start()

    def _run(self, job: SingleFlightJob):
        try:
            job()
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(threading.current_thread())
