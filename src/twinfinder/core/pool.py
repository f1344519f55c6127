"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/pool.py
Concurrent full-content digest engine.

PROTOCOL
--------
N worker threads each own a bounded inbox (capacity = queue_depth).
  • A worker announces its id on the shared readiness queue, blocks on its
    inbox, hashes the path it receives, records the digest, and announces again.
  • The dispatcher takes the next ready id and pushes up to queue_depth
    consecutive paths onto that worker's inbox before taking the next id.
    A full inbox ends the batch early, so a busy worker never stalls dispatch.
  • Digests go into one shared map guarded by a lock; a second lock (wrapped
    in a Condition) guards the processed counter, bumped once per path
    whatever the outcome. No lock is held while reading or hashing.
  • The supervisor waits on the counter's Condition until every path is
    processed, then shuts the pool down. A reporter thread polls the counter
    to drive the progress callback.

LIFECYCLE
---------
UNSTARTED → RUNNING → DRAINING → JOINED
shutdown() raises the termination flag, closes every inbox and the readiness
queue, then joins the workers. It is idempotent and a no-op on an unstarted pool;
a caller that arrives while the pool is DRAINING blocks until it is JOINED.
"""

import logging
import queue
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional

from twinfinder.core.grouper import FileGrouperImpl
from twinfinder.core.hasher import HasherImpl
from twinfinder.core.interfaces import DigestEngine, Hasher, ProgressCallback, StoppedFlag
from twinfinder.core.models import (
    DEFAULT_MAX_READ_BYTES,
    DEFAULT_QUEUE_DEPTH,
    DEFAULT_WORKERS,
    DigestGroups,
    PoolState,
    SizeGroups,
    Stage,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05
PROGRESS_INTERVAL = 0.1


class WorkQueue:
    """
    A queue that can be closed.
    Once closed, offer/put refuse new items and take() returns None,
    which tells the consumer there is no more work.
    """

    def __init__(self, maxsize: int = 0, poll_interval: float = POLL_INTERVAL):
        self._queue = queue.Queue(maxsize)
        self._closed = threading.Event()
        self.poll_interval = poll_interval

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, item: Any) -> bool:
        """Adds an item without blocking. False when full or closed."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(item)
        except queue.Full:
            return False
        return True

    def put(self, item: Any) -> bool:
        """Blocks until the item is accepted or the queue is closed."""
        while not self.closed:
            try:
                self._queue.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def take(self, stopped_flag: Optional[StoppedFlag] = None) -> Optional[Any]:
        """Blocks for the next item; None once the queue is closed or stopped_flag fires."""
        while not self.closed:
            if stopped_flag and stopped_flag():
                return None
            try:
                return self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
        return None

    def close(self) -> None:
        self._closed.set()


class DigestWorker(threading.Thread):
    """One hashing thread with a private bounded inbox."""

    def __init__(self, pool: 'DigestWorkerPool', worker_id: int):
        super().__init__(name=f"digest-worker-{worker_id}", daemon=True)
        self.pool = pool
        self.worker_id = worker_id
        self.inbox = WorkQueue(maxsize=pool.queue_depth, poll_interval=pool.poll_interval)

    def run(self):
        pool = self.pool
        while not pool.terminated:
            if not pool.ready.put(self.worker_id):
                break
            path = self.inbox.take()
            if path is None:
                break
            try:
                digest = pool.hasher.compute_digest(path, pool.max_read_bytes)
                if digest is not None:
                    pool.record(digest, path)
            except Exception:
                logger.exception(f"Unexpected error while hashing {path}")
            finally:
                pool.mark_processed(self.worker_id)
        logger.debug(f"{self.name} exiting")


class ProgressReporter(threading.Thread):
    """Polls the pool's processed counter and forwards it to a progress callback."""

    def __init__(self, pool: 'DigestWorkerPool', callback: ProgressCallback,
                 interval: float = PROGRESS_INTERVAL):
        super().__init__(name="digest-progress", daemon=True)
        self.pool = pool
        self.callback = callback
        self.interval = interval
        self._stopped = threading.Event()

    def run(self):
        last = -1
        while not self._stopped.wait(self.interval):
            current = self.pool.processed
            if current != last:
                self.callback(Stage.DIGEST.value, current, self.pool.total)
                last = current
        self.callback(Stage.DIGEST.value, self.pool.processed, self.pool.total)

    def stop(self):
        self._stopped.set()


class DigestWorkerPool(DigestEngine):
    """
    Hashes candidates on a fixed set of worker threads.

    Args:
        workers: Number of hashing threads (>= 1)
        queue_depth: Inbox capacity and largest batch handed out per announcement (>= 1)
        max_read_bytes: Read ceiling per file
        hasher: Sampling/digest implementation
        stopped_flag: Cancellation token; when it returns True the pool shuts down
                      and returns whatever digests have accumulated
    """

    def __init__(
        self,
        workers: int = DEFAULT_WORKERS,
        queue_depth: int = DEFAULT_QUEUE_DEPTH,
        max_read_bytes: int = DEFAULT_MAX_READ_BYTES,
        hasher: Optional[Hasher] = None,
        stopped_flag: Optional[StoppedFlag] = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        if workers < 1:
            raise ValueError("Worker count must be at least 1")
        if queue_depth < 1:
            raise ValueError("Queue depth must be at least 1")

        self.worker_count = workers
        self.queue_depth = queue_depth
        self.max_read_bytes = max_read_bytes
        self.hasher = hasher or HasherImpl()
        self.poll_interval = poll_interval
        self._stopped_flag = stopped_flag

        self.ready = WorkQueue(poll_interval=poll_interval)
        self.total = 0
        self.cancelled = False
        self.batch_sizes: List[int] = []
        self.handled_by: Dict[int, int] = defaultdict(int)

        self._workers: List[DigestWorker] = []
        self._reporter: Optional[ProgressReporter] = None
        self._digests = defaultdict(list)
        self._digest_lock = threading.Lock()
        self._processed = 0
        self._processed_cond = threading.Condition(threading.Lock())
        self._terminated = threading.Event()
        self._state = PoolState.UNSTARTED
        self._state_lock = threading.Lock()
        self._drainer: Optional[threading.Thread] = None
        self._joined = threading.Event()

    # ----- shared state accessors -----

    @property
    def state(self) -> PoolState:
        with self._state_lock:
            return self._state

    @property
    def terminated(self) -> bool:
        return self._terminated.is_set()

    @property
    def processed(self) -> int:
        with self._processed_cond:
            return self._processed

    def record(self, digest: str, path: str) -> None:
        with self._digest_lock:
            self._digests[digest].append(path)

    def mark_processed(self, worker_id: int) -> None:
        with self._processed_cond:
            self._processed += 1
            self.handled_by[worker_id] += 1
            if self._processed >= self.total:
                self._processed_cond.notify_all()

    def snapshot(self) -> DigestGroups:
        """Current digest groups, sorted and pruned of singletons."""
        with self._digest_lock:
            digests = {digest: list(paths) for digest, paths in self._digests.items()}
        return FileGrouperImpl.order_digest_groups(digests)

    # ----- lifecycle -----

    def _is_cancelled(self, stopped_flag: Optional[StoppedFlag] = None) -> bool:
        if self._stopped_flag and self._stopped_flag():
            return True
        return bool(stopped_flag and stopped_flag())

    def start(self, total: int) -> None:
        with self._state_lock:
            if self._state is not PoolState.UNSTARTED:
                raise RuntimeError(f"Pool cannot be started from state {self._state.value}")
            self._state = PoolState.RUNNING

        self.total = total
        self._workers = [DigestWorker(self, worker_id) for worker_id in range(self.worker_count)]
        for worker in self._workers:
            worker.start()
        logger.debug(f"Started {self.worker_count} digest workers (queue depth {self.queue_depth})")

    def shutdown(self) -> None:
        """
        Stops dispatch, closes every queue and joins the workers.
        Safe to call repeatedly, from a signal handler, or on a pool never started.
        A caller arriving while another one drains returns only once the workers are joined.
        """
        current = threading.current_thread()
        with self._state_lock:
            state = self._state
            if state is PoolState.RUNNING:
                self._state = PoolState.DRAINING
                self._drainer = current

        if state is PoolState.DRAINING:
            # another caller is joining; its own threads cannot wait for that join
            pool_threads = [self._drainer, self._reporter, *self._workers]
            if not any(current is thread for thread in pool_threads):
                self._joined.wait()
            return
        if state is not PoolState.RUNNING:
            return

        self._terminated.set()
        for worker in self._workers:
            worker.inbox.close()
        self.ready.close()

        for worker in self._workers:
            if worker is not current:
                worker.join()

        if self._reporter is not None:
            self._reporter.stop()
            if self._reporter is not current:
                self._reporter.join()

        with self._state_lock:
            self._state = PoolState.JOINED
        self._joined.set()
        logger.debug("Digest workers joined")

    # ----- dispatch and supervision -----

    def _dispatch(self, paths: List[str], stopped_flag: Optional[StoppedFlag] = None) -> bool:
        """
        Hands out paths in batches of up to queue_depth per readiness announcement.
        Returns False when dispatch was cut short by termination or cancellation.
        """
        index = 0
        while index < len(paths):
            if self.terminated or self._is_cancelled(stopped_flag):
                return False

            worker_id = self.ready.take(stopped_flag=lambda: self._is_cancelled(stopped_flag))
            if worker_id is None:
                return False

            inbox = self._workers[worker_id].inbox
            batch = 0
            while batch < self.queue_depth and index < len(paths):
                if self.terminated:
                    return False
                if not inbox.offer(paths[index]):
                    break
                index += 1
                batch += 1
            if batch:
                self.batch_sizes.append(batch)
        return True

    def _wait_for_completion(self, stopped_flag: Optional[StoppedFlag] = None) -> bool:
        with self._processed_cond:
            while self._processed < self.total:
                if self.terminated or self._is_cancelled(stopped_flag):
                    return False
                self._processed_cond.wait(timeout=self.poll_interval)
        return True

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DigestGroups:
        paths = [path for members in groups.values() for path in members]
        if not paths:
            return {}

        self.start(len(paths))
        if progress_callback:
            self._reporter = ProgressReporter(self, progress_callback)
            self._reporter.start()

        try:
            completed = self._dispatch(paths, stopped_flag) and self._wait_for_completion(stopped_flag)
            if not completed:
                self.cancelled = True
                logger.warning(
                    f"Digest stage cancelled after {self.processed} of {self.total} files"
                )
        finally:
            self.shutdown()

        return self.snapshot()
