"""Domain value objects."""

from pykeyv.domain.value_objects.keyv_entry import KeyPrefixData, KeyvEntry
from pykeyv.domain.value_objects.stored_envelope import StoredEnvelope, now_ms

__all__ = ["StoredEnvelope", "KeyvEntry", "KeyPrefixData", "now_ms"]
