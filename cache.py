# cache.py
import logging
import threading
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

class PageCache:
  """Rendered listing payloads keyed by view path, then by query string.

  Mutations call ``revalidate_path`` so the next read of that view is
  recomputed from the database. Each path carries a generation that
  ``revalidate_path`` bumps; a payload computed under an older generation
  is not stored.
  """

  def __init__(self) -> None:
    self._pages: Dict[str, Dict[str, Any]] = {}
    self._generations: Dict[str, int] = {}
    self._lock = threading.Lock()

  def get(self, path: str, query: str = "") -> Optional[Any]:
    with self._lock:
      return self._pages.get(path, {}).get(query)

  def generation(self, path: str) -> int:
    with self._lock:
      return self._generations.get(path, 0)

  def set(self, path: str, query: str, payload: Any, generation: Optional[int] = None) -> bool:
    with self._lock:
      if generation is not None and generation != self._generations.get(path, 0):
        logger.debug("dropped stale payload for %s (generation %d)", path, generation)
        return False
      self._pages.setdefault(path, {})[query] = payload
      return True

  def revalidate_path(self, path: str) -> None:
    with self._lock:
      dropped = self._pages.pop(path, None)
      self._generations[path] = self._generations.get(path, 0) + 1
    logger.debug("revalidated %s (%d cached entries)", path, len(dropped or {}))

  def __contains__(self, path: str) -> bool:
    with self._lock:
      return bool(self._pages.get(path))
