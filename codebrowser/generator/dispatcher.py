"""Two-phase dispatch of source files onto the worker pool.

Phase 1 walks the input files in order. Every file that has its own
compilation-database entry and is not a header becomes a Job and is
submitted at once; everything else goes to the delayed queue.

Phase 2 starts only after every Phase 1 submission has been made. Delayed
files get a recovered command (see JobBuilder.recover) and are submitted;
when no command can be found at all they are published as plain pages
instead, unless the run processes a whole directory.

The main thread only produces work. Nothing waits on a job until the pool
is drained at the end of the run. No error in one unit stops any other.
"""

import os
import time
from collections import Counter, deque
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace

from codebrowser.utils.logging import logger

from .config import PLAIN_PAGE_DISCLAIMER
from .jobs import Job, JobBuilder
from .page import make_footer, write_plain_page
from .processor import GenerationContext, UnitProcessor
from .projects import ProjectInfo, canonicalize

# Outcomes reported by the units of work
PROCESSED = "processed"
FAILED = "failed"
DUPLICATE = "duplicates"
PLAIN_PAGE = "plain_pages"

ProgressCallback = Callable[[int, str], None]


class Dispatcher:
    """Schedules one run's files onto a fixed-size thread pool."""

    def __init__(
        self,
        context: GenerationContext,
        builder: JobBuilder,
        processor: UnitProcessor,
        workers: int,
        header_extensions: Iterable[str],
        whole_directory: bool = False,
        progress: ProgressCallback | None = None,
        progress_every: int = 1,
    ):
        self.context = context
        self.builder = builder
        self.processor = processor
        self.workers = max(1, workers)
        self.header_extensions = tuple(header_extensions)
        self.whole_directory = whole_directory
        self.progress = progress
        self.progress_every = max(1, progress_every)

        self.delayed: deque[str] = deque()
        self._futures: list[Future] = []
        self._counts: Counter = Counter()
        self._progress = 0
        self._total = 0
        self._reported = 0

    # ------------------------------------------------------------------
    # Units of work (run on pool threads)
    # ------------------------------------------------------------------

    def run_job(self, job: Job) -> str:
        """Hand ``job`` to the unit processor unless its unit already ran."""
        if not self.context.processed.try_admit(job.unit_id):
            logger.warning(f"Skipping already processed {job.absolute_path}")
            return DUPLICATE

        try:
            ok = self.processor.process(job, self.context)
        except Exception as e:
            logger.opt(exception=True).error(f"Unit processor crashed on {job.absolute_path}: {e}")
            ok = False

        if not ok:
            logger.error(f"Failed to process {job.absolute_path}")
            return FAILED
        logger.debug(f"Processed {job.absolute_path} ({job.source_status.value})")
        return PROCESSED

    def emit_plain_page(self, file: str, project: ProjectInfo) -> str:
        """Publish ``file`` without annotation and record it in otherIndex."""
        relative_name = self.context.registry.relative_name(file, project)
        try:
            write_plain_page(
                self.context.output_root,
                relative_name,
                file,
                make_footer(project),
                PLAIN_PAGE_DISCLAIMER,
                self.context.data_path,
            )
        except (OSError, UnicodeError) as e:
            logger.error(f"Could not write plain page for {file!r}: {e}")
            return FAILED

        self.context.output.add_other_index(relative_name)
        logger.info(f"Wrote plain page {relative_name}")
        return PLAIN_PAGE

    # ------------------------------------------------------------------
    # Submission (main thread)
    # ------------------------------------------------------------------

    def _report(self, file: str) -> None:
        percent = 100 * self._progress // self._total if self._total else 100
        logger.debug(f"[{percent}%] Processing {file}")
        self._reported += 1
        if self.progress is not None and self._reported % self.progress_every == 0:
            self.progress(percent, file)

    def _submit(self, executor: ThreadPoolExecutor, fn, *args) -> None:
        self._futures.append(executor.submit(fn, *args))

    def _is_header(self, path: str) -> bool:
        return os.path.splitext(path)[1] in self.header_extensions

    def submit_in_database(self, executor: ThreadPoolExecutor, sources: list[str]) -> None:
        """Phase 1: submit database files, queue the rest for Phase 2."""
        registry = self.context.registry
        for source in sources:
            self._progress += 1
            if not source or source == "-":
                continue

            file = canonicalize(source)
            project = registry.resolve(file)
            if project is None:
                logger.warning(f"Sources: Skipping file not included by any project {file}")
                self._counts["skipped"] += 1
                continue
            if not registry.is_processable(file, project):
                logger.warning(f"Sources: Skipping external file {file}")
                self._counts["skipped"] += 1
                continue

            job = None if self._is_header(file) else self.builder.direct(file, self.whole_directory)
            if job is None:
                logger.info(f"Delayed {file}")
                self._progress -= 1
                self.delayed.append(file)
                continue

            self._report(file)
            self._submit(executor, self.run_job, job)
            self._counts["submitted"] += 1

    def submit_delayed(self, executor: ThreadPoolExecutor) -> None:
        """Phase 2: recover commands for the delayed files."""
        registry = self.context.registry
        self._counts["delayed"] = len(self.delayed)
        while self.delayed:
            file = self.delayed.popleft()
            self._progress += 1

            project = registry.resolve(file)
            if project is None:
                logger.warning(f"NotInDB: Skipping file not included by any project {file}")
                self._counts["skipped"] += 1
                continue
            if not registry.admits(file, project):
                logger.warning(f"NotInDB: Skipping already processed {file}")
                self._counts["skipped"] += 1
                continue

            job = self.builder.recover(file, self.whole_directory)
            if job is not None:
                self._report(file)
                self._submit(executor, self.run_job, replace(job, page_claimed=True))
                self._counts["submitted"] += 1
                self._counts["recovered"] += 1
                continue

            logger.warning(f"Could not find commands for {file}")
            if self.whole_directory:
                self._counts["skipped"] += 1
                continue
            self._submit(executor, self.emit_plain_page, file, project)

    def dispatch(self, sources: list[str]) -> dict:
        """Run both phases and drain the pool. Returns the run counters."""
        start = time.time()
        self._total = len(sources)

        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="cbgen-worker")
        try:
            self.submit_in_database(executor, sources)
            # Phase barrier: every Phase 1 job is queued before any recovery runs
            logger.debug(f"Delayed queue: {list(self.delayed)}")
            self.submit_delayed(executor)
        finally:
            executor.shutdown(wait=True)

        for future in self._futures:
            try:
                self._counts[future.result()] += 1
            except Exception as e:
                logger.opt(exception=True).error(f"Worker error: {e}")
                self._counts[FAILED] += 1

        summary = {
            key: self._counts.get(key, 0)
            for key in (
                "submitted",
                "delayed",
                "recovered",
                PROCESSED,
                FAILED,
                DUPLICATE,
                "skipped",
                PLAIN_PAGE,
            )
        }
        summary["elapsed"] = time.time() - start
        return summary
