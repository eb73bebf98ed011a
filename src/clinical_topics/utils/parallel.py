"""Parallel processing utilities for per-document work."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


class ParallelProcessor:
    """
    Ordered map over a thread pool.

    Work items share no mutable state, so results are independent of
    scheduling; they are always returned in input order. Threads (not
    processes) are used because injected callables such as lemmatizers
    are not guaranteed to be picklable.

    Usage:
        processor = ParallelProcessor(max_workers=4)
        results = processor.map(process_document, documents)
    """

    def __init__(self, max_workers: Optional[int] = None):
        """
        Initialize parallel processor.

        Args:
            max_workers: Number of worker threads (None = auto, 1 = sequential)
        """
        self.max_workers = max_workers

    def should_use_parallel(self, num_items: int, max_workers: Optional[int] = None) -> bool:
        """
        Determine if parallel processing is beneficial.

        Args:
            num_items: Number of items to process
            max_workers: Max workers requested (None or 1 means sequential)

        Returns:
            True if should use parallel processing
        """
        return max_workers is not None and max_workers > 1 and num_items > 1

    def map(self, worker_func: Callable[[T], R], items: Sequence[T]) -> List[R]:
        """
        Apply worker_func to every item.

        Args:
            worker_func: Function applied to each item
            items: Items to process

        Returns:
            Results in the same order as items
        """
        if self.max_workers is None:
            max_workers = min(os.cpu_count() or 4, len(items))
        else:
            max_workers = self.max_workers

        if not self.should_use_parallel(len(items), max_workers):
            return [worker_func(item) for item in items]

        logger.debug("Processing %d items on %d threads", len(items), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(worker_func, items))
