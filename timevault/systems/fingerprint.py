"""Deterministic state fingerprint using xxhash.

Two ledgers that executed the same call sequence against the same clock
readings MUST produce the same fingerprint. Records are hashed in id order
with fixed-width packing so the digest does not depend on dict ordering.
"""

from __future__ import annotations

import struct

import xxhash

from timevault.core.snapshot import Snapshot

_SEED = 0x7469_6D65
_INT_WIDTH = 32  # bytes; value amounts can exceed 64 bits


def _pack_int(hasher: xxhash.xxh64, *values: int) -> None:
    for value in values:
        hasher.update(int(value).to_bytes(_INT_WIDTH, "little", signed=True))


def _pack_str(hasher: xxhash.xxh64, value: str | None) -> None:
    raw = (value or "").encode("utf-8")
    hasher.update(struct.pack("<I", len(raw)))
    hasher.update(raw)


def ledger_fingerprint(snapshot: Snapshot) -> str:
    """Return a 16-hex-digit digest of the observable ledger state."""
    h = xxhash.xxh64(seed=_SEED)

    for g in snapshot.goals:
        _pack_int(h, g.id, g.stake_amount, g.deadline, g.created_at,
                  g.score, g.status, g.category, g.scored)
        _pack_str(h, g.owner)
        _pack_str(h, g.description)
        _pack_str(h, g.proof_reference)

    for gid in sorted(snapshot.votes):
        v = snapshot.votes[gid]
        _pack_int(h, gid, v.opened_at, v.voting_deadline,
                  v.yes_count, v.no_count, v.resolved, v.outcome)
        for voter in sorted(v.voters):
            _pack_str(h, voter)

    for owner in sorted(snapshot.streaks):
        s = snapshot.streaks[owner]
        _pack_str(h, owner)
        _pack_int(h, s.current, s.highest)

    _pack_int(
        h,
        snapshot.total_staked, snapshot.total_deposited, snapshot.total_withdrawn,
        snapshot.total_donated, snapshot.total_stranded, snapshot.custody_balance,
    )
    return h.hexdigest()
