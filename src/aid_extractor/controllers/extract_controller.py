from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Optional

from tqdm.auto import tqdm

from ..utils.json_service import from_json
from ..utils.parallel_workers import extract_file_worker

logger = logging.getLogger(__name__)


class ExtractController:
    """
    Orchestrates the extraction of many HTML files.
    Utilizes multiprocessing for throughput; each worker builds its own
    registry from the same configuration mapping.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, default_workers: Optional[int] = None) -> None:
        self.config = config or {}
        self.default_workers = default_workers or (os.cpu_count() or 4)

    def extract_files(
            self,
            paths: Iterable[str],
            *,
            workers: Optional[int] = None,
            show_progress: bool = True,
    ) -> Dict[str, Any]:
        """
        Extracts every file and returns execution statistics plus the
        per-file results in input order.
        """
        paths = [str(p) for p in paths]
        if not paths:
            return self._empty_stats()

        n_workers = max(1, min(int(workers or self.default_workers), len(paths)))
        start = time.perf_counter()
        payloads: Dict[str, Optional[str]] = {}

        if n_workers == 1:
            iterator = paths if not show_progress else tqdm(paths, desc="Extracting", unit=" file")
            for path in iterator:
                payloads[path] = extract_file_worker(path, self.config)
        else:
            with ProcessPoolExecutor(max_workers=n_workers) as pool:
                futures = {pool.submit(extract_file_worker, p, self.config): p for p in paths}
                iterator = as_completed(futures)
                if show_progress:
                    iterator = tqdm(iterator, total=len(futures), desc="Extracting", unit=" file")

                for fut in iterator:
                    path = futures[fut]
                    try:
                        payloads[path] = fut.result()
                    except Exception as e:
                        logger.error(f"Extraction of {path} failed in worker: {e}", exc_info=True)
                        payloads[path] = None

        results: List[Dict[str, Any]] = []
        failed: List[str] = []
        diagnostics = 0
        for path in paths:
            payload = payloads.get(path)
            if not payload:
                failed.append(path)
                continue
            item = from_json(payload)
            diagnostics += len(item["result"]["diagnostics"])
            results.append(item)

        elapsed = time.perf_counter() - start
        logger.info(
            "Extracted %d/%d files in %.2fs (%d diagnostics, %d failures).",
            len(results), len(paths), elapsed, diagnostics, len(failed),
        )
        return {
            "files": len(paths),
            "ok": len(results),
            "failed": failed,
            "diagnostics": diagnostics,
            "workers": n_workers,
            "elapsed_s": round(elapsed, 3),
            "results": results,
        }

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "files": 0,
            "ok": 0,
            "failed": [],
            "diagnostics": 0,
            "workers": 0,
            "elapsed_s": 0.0,
            "results": [],
        }
