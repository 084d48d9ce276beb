"""GET /api/v1/events, /stats, /config — ledger-wide reads polled by indexers and the verifier."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from timevault.api.dependencies import get_ledger_manager
from timevault.api.ledger_manager import LedgerManager
from timevault.api.schemas import EventSchema, EventsResponse, LedgerConfigResponse, LedgerStats
from timevault.core.enums import EventKind
from timevault.systems.fingerprint import ledger_fingerprint

router = APIRouter()


@router.get("/events", response_model=EventsResponse)
def get_events(
    since: int = Query(0, ge=0, description="Only return events with seq >= since"),
    limit: int = Query(500, ge=1, le=5000),
    kind: str | None = Query(None, description="Filter by event kind, e.g. PROOF_SUBMITTED"),
    manager: LedgerManager = Depends(get_ledger_manager),
) -> EventsResponse:
    events = manager.event_log.since(since)[:limit]
    next_seq = events[-1].seq + 1 if events else since
    if kind is not None:
        try:
            wanted = EventKind[kind.upper()]
        except KeyError:
            raise HTTPException(status_code=422, detail=f"Unknown event kind {kind!r}.") from None
        events = [e for e in events if e.kind == wanted]
    return EventsResponse(
        next_seq=next_seq,
        events=[EventSchema(**e.to_dict()) for e in events],
    )


@router.get("/stats", response_model=LedgerStats)
def get_stats(manager: LedgerManager = Depends(get_ledger_manager)) -> LedgerStats:
    snapshot = manager.get_snapshot()
    return LedgerStats(
        timestamp=snapshot.timestamp,
        goal_count=snapshot.goal_count,
        goals_by_status=snapshot.goals_by_status(),
        total_deposited=snapshot.total_deposited,
        total_staked=snapshot.total_staked,
        total_withdrawn=snapshot.total_withdrawn,
        total_donated=snapshot.total_donated,
        total_stranded=snapshot.total_stranded,
        custody_balance=snapshot.custody_balance,
        badges_minted=manager.registry.minted_count,
        fingerprint=ledger_fingerprint(snapshot),
    )


@router.get("/config", response_model=LedgerConfigResponse)
def get_config(manager: LedgerManager = Depends(get_ledger_manager)) -> LedgerConfigResponse:
    snapshot = manager.get_snapshot()
    cfg = manager.config
    return LedgerConfigResponse(
        ledger_address=cfg.ledger_address,
        admin=snapshot.admin,
        oracle=snapshot.oracle,
        admission_mode=snapshot.admission_mode,
        min_stake=snapshot.min_stake,
        voting_period=snapshot.voting_period,
        grace_period=snapshot.grace_period,
        beneficiary=snapshot.beneficiary,
        beneficiary_share_bps=snapshot.beneficiary_share_bps,
        badge_registry=snapshot.badge_registry,
        pass_threshold=cfg.pass_threshold,
        fail_threshold=cfg.fail_threshold,
    )
