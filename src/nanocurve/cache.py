"""Cache of discretized curves shared between helices."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Hashable, Optional, Tuple

from nanocurve.config import DEFAULT_SETTINGS, DiscretizationSettings
from nanocurve.discretization import DiscretizedCurve
from nanocurve.parameters import HelixParameters

logger = logging.getLogger(__name__)

__all__ = ["CurveCache"]

_Key = Tuple[Hashable, HelixParameters, DiscretizationSettings]


class CurveCache:
    """Thread safe map from cache keys to discretized curves.

    A key is ``(descriptor, helix parameters, settings)``: a curve built with
    coarse settings is never handed to a caller asking for another precision.
    Only descriptors flagged ``cacheable`` are stored: they are frozen,
    hashable, fully defined by their fields and expensive to discretize.
    Entries are never evicted; the owner drops the whole cache when it no
    longer needs it.
    """

    def __init__(self) -> None:
        self._store: Dict[_Key, DiscretizedCurve] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: _Key) -> bool:
        return key in self._store

    def get(
        self,
        descriptor: Hashable,
        helix_parameters: HelixParameters,
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> Optional[DiscretizedCurve]:
        with self._lock:
            return self._store.get((descriptor, helix_parameters, settings))

    def get_or_insert(
        self,
        descriptor: Hashable,
        helix_parameters: HelixParameters,
        builder: Callable[[], DiscretizedCurve],
        settings: DiscretizationSettings = DEFAULT_SETTINGS,
    ) -> DiscretizedCurve:
        """Cached curve for the key, built with ``builder`` on the first request.

        The lock is held while building so that a curve is discretized only
        once even when several threads request it.
        """
        key = (descriptor, helix_parameters, settings)
        with self._lock:
            curve = self._store.get(key)
            if curve is not None:
                self.hits += 1
                logger.debug("curve cache hit for %s", type(descriptor).__name__)
                return curve
            self.misses += 1
            logger.debug("curve cache miss for %s", type(descriptor).__name__)
            curve = builder()
            self._store[key] = curve
            return curve

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self.hits = 0
            self.misses = 0
