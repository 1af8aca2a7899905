"""State Persistence - JSON blob adapter over the storage capability.

Invariants:
    - Keys are namespaced "<prefix>_<domain>"
    - save/clear return False on any failure, load returns the default; none raise
    - Every swallowed failure is logged with domain and error_code

Design Decisions:
    - Failures swallowed here and only here: the state store treats durability
      as best effort and keeps the in-memory slice authoritative
"""

import json
import logging
from typing import Any, TypeVar

from calmish.core.boundary_protocols import BlobStorage
from calmish.core.domain_types import Slice
from calmish.core.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PREFIX = "calmish"


class StatePersistence:
    """Serializes JSON-safe values to namespaced blobs."""

    def __init__(self, storage: BlobStorage, prefix: str = DEFAULT_PREFIX):
        self.storage = storage
        self.prefix = prefix

    def key_for(self, domain: Slice | str) -> str:
        domain = domain.value if isinstance(domain, Slice) else domain
        return f"{self.prefix}_{domain}"

    def save(self, domain: Slice | str, value: Any) -> bool:
        key = self.key_for(domain)
        try:
            blob = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Error serializing {key}: {e}",
                extra={"domain": key, "error_code": "SERIALIZATION_ERROR"},
            )
            return False
        try:
            self.storage.put(key, blob)
        except PersistenceError as e:
            _log_storage_failure(key, e)
            return False
        except Exception as e:
            logger.error(
                f"Unexpected storage error saving {key}: {e}", exc_info=True,
                extra={"domain": key, "error_code": "PERSISTENCE_ERROR"},
            )
            return False
        return True

    def load(self, domain: Slice | str, default: T) -> T | Any:
        key = self.key_for(domain)
        try:
            blob = self.storage.get(key)
        except PersistenceError as e:
            _log_storage_failure(key, e)
            return default
        except Exception as e:
            logger.error(
                f"Unexpected storage error loading {key}: {e}", exc_info=True,
                extra={"domain": key, "error_code": "PERSISTENCE_ERROR"},
            )
            return default
        if not blob:
            return default
        try:
            return json.loads(blob)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Error parsing stored {key}: {e}",
                extra={"domain": key, "error_code": "DESERIALIZATION_ERROR"},
            )
            return default

    def clear(self, domain: Slice | str) -> bool:
        key = self.key_for(domain)
        try:
            self.storage.delete(key)
        except PersistenceError as e:
            _log_storage_failure(key, e)
            return False
        except Exception as e:
            logger.error(
                f"Unexpected storage error clearing {key}: {e}", exc_info=True,
                extra={"domain": key, "error_code": "PERSISTENCE_ERROR"},
            )
            return False
        return True


def _log_storage_failure(key: str, error: PersistenceError) -> None:
    logger.error(
        f"Storage {error.operation} failed for {key}: {error.message}",
        extra={"domain": key, "error_code": error.code},
    )
