#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Background Image Loader
========================================
Copyright (c) 2025 PNGN-Tec LLC

Off-Thread Loading
==================
Fetching, decoding and resampling block, so they run on daemon worker
threads and never on the thread that handles keys and repaints. Each
load is a one-shot task whose only effect is posting a completion event:

    LoadImage command -> load_frame() -> LoadSucceeded | LoadFailed

A running load is never interrupted; a load for a reference the user
has already left still completes and its result is dropped by the state
machine. Loads still waiting for a worker slot are dropped on shutdown.

Module Interface
================
- load_frame(): Run one load synchronously and return the result event
- ImageLoader: Bounded set of daemon workers that run load_frame and post the result
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, List, Optional

from config import ColorProfile, ViewerConfig
from imgcat_errors import ImgcatError
from imgcat_raster import rasterize
from imgcat_source import load_pixels
from imgcat_state import Event, LoadFailed, LoadImage, LoadSucceeded

# Configure logging
logger = logging.getLogger('imgcat_loader')


def load_frame(command: LoadImage, profile: ColorProfile, config: ViewerConfig) -> Event:
    """
    Fetch, decode and rasterize one reference.

    Domain errors become a LoadFailed event; anything else propagates.

    Args:
        command: What to load and how many rows to fill
        profile: Active terminal color profile
        config: Viewer configuration

    Returns:
        LoadSucceeded with the frame, or LoadFailed with the error
    """
    start_time = time.time()
    try:
        pixels = load_pixels(command.reference, config.network)
        frame = rasterize(
            pixels,
            command.rows,
            profile,
            algorithm=config.rendering.algorithm,
            glyph=config.rendering.glyph,
        )
    except ImgcatError as e:
        logger.error(f"Loading {command.reference} failed ({e.kind}): {e}")
        return LoadFailed(command.request_id, command.reference, e)

    elapsed_ms = (time.time() - start_time) * 1000
    logger.info(f"Loaded {command.reference} as {frame.width}x{frame.height} cells "
                f"in {elapsed_ms:.1f}ms (request {command.request_id})")
    return LoadSucceeded(command.request_id, command.reference, frame)


class ImageLoader:
    """
    Runs load commands on daemon threads.

    At most ``max_workers`` loads run at once; the rest wait for a free
    slot. Worker threads never keep the process alive, so quitting does
    not wait for a slow fetch to finish.

    Completion events are handed to ``post``, which must be safe to call
    from a worker thread (``queue.Queue.put`` is).
    """

    def __init__(self, profile: ColorProfile, config: ViewerConfig,
                 post: Callable[[Event], None], max_workers: Optional[int] = None):
        self.profile = profile
        self.config = config
        self._post = post
        self._max_workers = max_workers or config.performance.max_worker_threads
        self._slots = threading.BoundedSemaphore(self._max_workers)
        self._workers: List[threading.Thread] = []
        self._workers_lock = threading.Lock()
        self._closed = threading.Event()

        # Statistics
        self.stats = {
            'submitted': 0,
            'succeeded': 0,
            'failed': 0,
        }
        self._stats_lock = threading.Lock()

        logger.info(f"ImageLoader initialized: workers={self._max_workers}, profile={profile.value}")

    def submit(self, command: LoadImage) -> Future:
        """
        Start loading in the background; the result arrives as an event.

        Raises:
            RuntimeError: If the loader has been shut down
        """
        if self._closed.is_set():
            raise RuntimeError("Cannot submit loads after shutdown")

        future: Future = Future()
        worker = threading.Thread(
            target=self._run,
            args=(command, future),
            name=f"ImageLoader-{command.request_id}",
            daemon=True
        )
        with self._workers_lock:
            self._workers = [thread for thread in self._workers if thread.is_alive()]
            self._workers.append(worker)
        with self._stats_lock:
            self.stats['submitted'] += 1
        worker.start()
        return future

    def _run(self, command: LoadImage, future: Future):
        with self._slots:
            if self._closed.is_set():
                future.cancel()
            if not future.set_running_or_notify_cancel():
                return

            try:
                event = load_frame(command, self.profile, self.config)
            except Exception as e:
                logger.exception(f"Unexpected error loading {command.reference}")
                event = LoadFailed(command.request_id, command.reference, e)

        with self._stats_lock:
            if isinstance(event, LoadFailed):
                self.stats['failed'] += 1
            else:
                self.stats['succeeded'] += 1
        future.set_result(event)
        self._post(event)

    def shutdown(self, wait: bool = False):
        """
        Stop accepting work and drop loads still waiting for a slot.

        Args:
            wait: Join running loads, for at most the configured shutdown timeout
        """
        logger.info("Shutting down image loader")
        self._closed.set()
        if not wait:
            return

        deadline = time.time() + self.config.performance.shutdown_timeout
        with self._workers_lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(max(0.0, deadline - time.time()))
            if worker.is_alive():
                logger.warning(f"{worker.name} still running after shutdown timeout")
