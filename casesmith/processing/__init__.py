"""Processing utilities for parallel CFG extraction."""

from .parallel_processor import (
    DEFAULT_IGNORE_DIRS,
    RESULTS_DIR_NAME,
    FileResult,
    FileTask,
    ParallelProcessor,
)

__all__ = [
    "DEFAULT_IGNORE_DIRS",
    "RESULTS_DIR_NAME",
    "FileResult",
    "FileTask",
    "ParallelProcessor",
]
