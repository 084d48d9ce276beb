"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from timevault.core.models import Badge, Goal, Streak, Vote


# --- Goals ---

class CreateGoalRequest(BaseModel):
    deadline: int = Field(description="Unix seconds; must be in the future")
    category: int = Field(ge=0, description="Category enum value (0=Health … 5=Other)")
    description: str
    stake: int = Field(gt=0, description="Stake in the smallest value unit")


class GoalCreatedResponse(BaseModel):
    goal_id: int


class ProofRequest(BaseModel):
    proof_reference: str = Field(description="Content locator, e.g. an IPFS CID or URL")


class GoalSchema(BaseModel):
    id: int
    owner: str
    stake_amount: int
    deadline: int
    created_at: int
    category: str
    description: str
    score: int
    scored: bool
    status: str
    proof_reference: str

    @classmethod
    def from_goal(cls, goal: Goal) -> GoalSchema:
        return cls(**goal.to_dict())


class StreakSchema(BaseModel):
    owner: str
    current: int
    highest: int

    @classmethod
    def from_streak(cls, owner: str, streak: Streak) -> StreakSchema:
        return cls(owner=owner, current=streak.current, highest=streak.highest)


class WithdrawResponse(BaseModel):
    goal_id: int
    amount: int


# --- Oracle ---

class ScoreRequest(BaseModel):
    score: int = Field(ge=0, le=100)
    nonce: int | None = None
    signature: str | None = None
    reason: str = ""


class VerdictRequest(BaseModel):
    passed: bool
    nonce: int | None = None
    signature: str | None = None


class ResolutionResponse(BaseModel):
    goal_id: int
    status: str


class NonceResponse(BaseModel):
    goal_id: int
    next_nonce: int


# --- Votes ---

class VoteRequest(BaseModel):
    support: bool


class VoteSchema(BaseModel):
    goal_id: int
    opened_at: int
    voting_deadline: int
    yes_count: int
    no_count: int
    voters: list[str] = Field(default_factory=list)
    resolved: bool
    outcome: bool

    @classmethod
    def from_vote(cls, vote: Vote) -> VoteSchema:
        return cls(**vote.to_dict())


class VoteOutcomeResponse(BaseModel):
    goal_id: int
    outcome: bool
    status: str


# --- Badges ---

class BadgeSchema(BaseModel):
    badge_id: int
    holder: str
    goal_id: int
    category: str
    completed_at: int
    streak_at_mint: int

    @classmethod
    def from_badge(cls, holder: str, badge: Badge) -> BadgeSchema:
        return cls(holder=holder, **badge.to_dict())


class BadgeTransferRequest(BaseModel):
    to: str


class BadgeHoldingsResponse(BaseModel):
    holder: str
    balance: int
    by_category: dict[str, int]
    badges: list[BadgeSchema]


# --- Admin ---

class OracleUpdate(BaseModel):
    oracle: str
    key_hex: str | None = Field(None, description="New signing key (signed admission only)")


class IntSettingUpdate(BaseModel):
    value: int


class BeneficiaryUpdate(BaseModel):
    beneficiary: str | None = None


class BadgeRegistryUpdate(BaseModel):
    enabled: bool


class AdminTransfer(BaseModel):
    new_admin: str


# --- Accounts ---

class FundRequest(BaseModel):
    amount: int = Field(gt=0)


class AccountSchema(BaseModel):
    address: str
    balance: int


# --- State ---

class ActionResponse(BaseModel):
    status: str
    message: str


class EventSchema(BaseModel):
    seq: int
    timestamp: int
    kind: str
    goal_id: int | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class EventsResponse(BaseModel):
    next_seq: int
    events: list[EventSchema]


class LedgerStats(BaseModel):
    timestamp: int
    goal_count: int
    goals_by_status: dict[str, int]
    total_deposited: int
    total_staked: int
    total_withdrawn: int
    total_donated: int
    total_stranded: int
    custody_balance: int
    badges_minted: int
    fingerprint: str


class LedgerConfigResponse(BaseModel):
    ledger_address: str
    admin: str
    oracle: str
    admission_mode: str
    min_stake: int
    voting_period: int
    grace_period: int
    beneficiary: str | None
    beneficiary_share_bps: int
    badge_registry: str | None
    pass_threshold: int
    fail_threshold: int
