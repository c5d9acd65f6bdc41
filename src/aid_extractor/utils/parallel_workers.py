# file: src/aid_extractor/utils/parallel_workers.py
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..dom.core import InvalidInputError
from ..dom.registry import SchemaRegistry
from ..extractor import AnnotationExtractor
from .json_service import to_json

logger = logging.getLogger(__name__)


def extract_file_worker(path: str, config: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Worker function extracting the semantic tree of one HTML file.
    Returns a JSON string of {'path', 'result'} (or None on error).
    """
    file_path = Path(path)
    try:
        html = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error(f"WORKER ERROR reading {path}: {e}")
        return None

    try:
        extractor = AnnotationExtractor(SchemaRegistry.from_config(config))
        result = extractor.extract_html(html)
    except InvalidInputError as e:
        logger.error(f"WORKER ERROR extracting {path}: {e}")
        return None

    # Serialize to JSON to avoid pickling the tree (and its DOM references) across processes
    return to_json({"path": str(file_path), "result": result.to_dict()}, indent=None)
