"""Redis Cluster hash slot helpers.

A cluster rejects a multi-key command whose keys span more than one hash
slot (CROSSSLOT). Batch operations therefore split their keys into slot
groups, send one command per group, and put the per-key results back in
the caller's order.

Groups hold positions rather than keys, so duplicate keys in one request
each get their own result.

Usage:
    groups = group_by_slot(["{user}:1", "order:7", "{user}:2"], cluster=True)
    # {slot("user"): [0, 2], slot("order:7"): [1]}

    results = reassemble(len(keys), {slot: (positions, values), ...})
"""

from collections.abc import Mapping, Sequence
from typing import Any

from redis.crc import key_slot

# Placeholder slot for single-node deployments, which accept cross-slot commands.
SINGLE_NODE_SLOT = 0


def calculate_slot(key: str) -> int:
    """CRC16 hash slot of a key, honouring ``{hash tags}``."""
    return key_slot(key.encode("utf-8"))


def group_by_slot(keys: Sequence[str], *, cluster: bool) -> dict[int, list[int]]:
    """Map each slot to the positions of the keys that hash to it.

    Args:
        keys: Physical (prefixed) keys.
        cluster: When False every position lands in one group.

    Returns:
        Slot to ordered list of positions in ``keys``.
    """
    if not cluster:
        return {SINGLE_NODE_SLOT: list(range(len(keys)))} if keys else {}
    groups: dict[int, list[int]] = {}
    for position, key in enumerate(keys):
        groups.setdefault(calculate_slot(key), []).append(position)
    return groups


def reassemble(
    size: int,
    grouped_results: Mapping[int, tuple[Sequence[int], Sequence[Any]]],
    default: Any = None,
) -> list[Any]:
    """Rebuild a positional result list from per-group results.

    Args:
        size: Number of keys in the original request.
        grouped_results: Slot to ``(positions, results)``; ``results[i]``
            belongs to ``positions[i]``.
        default: Value for positions no group answered.

    Returns:
        List of length ``size`` in the original key order.
    """
    ordered = [default] * size
    for positions, results in grouped_results.values():
        for position, result in zip(positions, results, strict=True):
            ordered[position] = result
    return ordered
