"""Decay reconciliation rules.

Everything here is pure: given the persisted Account/UserAccountLink and a
fresh provider snapshot, compute the next state and an event describing what
happened. Inputs are never mutated; callers persist the returned copies.

Match-history pass (``reconcile``):
  1. count the ranked games newer than the last one we saw
  2. apply tier-transition rules (Emerald immunity, promotions, apex edge case)
  3. bank decay days for the new games

Daily pass (``decrement``):
  4. take one day off the bank, flag decay at zero, and detect an apex
     account that has decayed back to Diamond
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from domain.entities import (
    Account,
    AccountSnapshot,
    EventKind,
    IMMUNE,
    RankSnapshot,
    ReconcileEvent,
    UserAccountLink,
)
from domain.enums import Tier

# Where a Master+ account lands when it decays out of the apex tiers; an
# account flagged ``is_special`` sitting exactly here has no visible counter.
APEX_IMMUNITY_DIVISION = "II"
APEX_IMMUNITY_LP = 75
DIAMOND_RESET_DAYS = 28
MASTER_RESET_DAYS = 14


@dataclass(frozen=True)
class ReconcileResult:
    account: Account
    link: UserAccountLink
    event: ReconcileEvent


@dataclass
class _Pass:
    """Scratch state threaded through the rules of one pass."""

    link: UserAccountLink
    notes: List[str] = field(default_factory=list)


def count_new_games(last_seen_id: Optional[str], match_ids: Sequence[str]) -> int:
    """Number of ids in ``match_ids`` (most recent first) newer than ``last_seen_id``.

    When the last seen id has scrolled out of the window every listed game is
    treated as new. That can over-credit after a long gap; it is accepted
    rather than under-crediting a player who did play.
    """
    if not match_ids:
        return 0
    try:
        return list(match_ids).index(last_seen_id)
    except ValueError:
        return len(match_ids)


def ceiling_tier(tier: Optional[Tier], link: UserAccountLink) -> Optional[Tier]:
    """Tier whose ceiling bounds the link's bank.

    An apex account flagged special after decaying under 75LP is treated as
    back in Diamond, so it may hold the Diamond allowance of 28 days.
    """
    if tier is not None and tier.is_apex and link.is_special:
        return Tier.DIAMOND
    return tier


def _set_days(state: _Pass, days: int, note: str) -> None:
    if state.link.remaining_decay_days == days:
        return
    state.link = replace(state.link, remaining_decay_days=days, is_decaying=False)
    state.notes.append(note)


def apply_tier_transitions(
    link: UserAccountLink,
    previous_tier: Optional[Tier],
    rank: RankSnapshot,
) -> Tuple[UserAccountLink, List[str]]:
    """Rules evaluated in order; a later rule may override an earlier one."""
    state = _Pass(link=link)
    fresh = rank.tier

    if fresh is Tier.EMERALD:
        _set_days(state, IMMUNE, "emerald has no decay, now immune")

    if fresh is Tier.DIAMOND and previous_tier is Tier.EMERALD and state.link.is_immune:
        _set_days(state, DIAMOND_RESET_DAYS, "promoted to diamond, bank reset to 28")

    if fresh is not None and fresh.is_apex and (previous_tier is None or not previous_tier.is_apex):
        _set_days(state, MASTER_RESET_DAYS, f"promoted to {fresh.value.lower()}, bank reset to 14")

    if link.is_special and rank.is_exactly(Tier.DIAMOND, APEX_IMMUNITY_DIVISION, APEX_IMMUNITY_LP):
        _set_days(state, IMMUNE, "special account at D2 75LP, now immune")

    bound = ceiling_tier(fresh, state.link)
    if not state.link.is_immune and bound is not None and bound.decay_ceiling is not None:
        if state.link.remaining_decay_days > bound.decay_ceiling:
            _set_days(state, bound.decay_ceiling, f"bank clamped to the {bound.value.lower()} ceiling")

    return state.link, state.notes


def accrue_decay_days(
    link: UserAccountLink,
    tier: Optional[Tier],
    new_games: int,
) -> Tuple[UserAccountLink, List[str], bool]:
    """Bank days for ``new_games`` games. Returns (link, notes, immunity_broken)."""
    if new_games <= 0:
        return link, [], False

    # a played game always cancels an in-progress decay
    updated = replace(link, is_decaying=False)
    if tier is None or not tier.is_decay_tracked:
        return updated, [], False

    ceiling = tier.decay_ceiling
    if updated.is_immune:
        updated = replace(updated, remaining_decay_days=ceiling, is_special=False)
        return updated, [f"immune account played {new_games} game(s), bank reset to {ceiling}"], True

    banked = min(ceiling, updated.remaining_decay_days + new_games * tier.days_per_game)
    updated = replace(updated, remaining_decay_days=banked)
    return updated, [f"{new_games} new game(s) banked, now {banked}/{ceiling}"], False


def apply_daily_decrement(
    link: UserAccountLink,
    tier: Optional[Tier],
    league_points: int,
) -> Tuple[UserAccountLink, EventKind, List[str]]:
    """One day of inactivity. Immune links are never touched."""
    if link.is_immune or tier is None or not tier.is_decay_tracked:
        return link, EventKind.NO_OP, []

    days = link.remaining_decay_days
    if days > 0:
        days -= 1
        if days == 0:
            return replace(link, remaining_decay_days=0, is_decaying=True), EventKind.DECAY_STARTED, ["bank empty, decaying"]
        return replace(link, remaining_decay_days=days), EventKind.DECREMENTED, []

    if not link.is_decaying:
        return replace(link, is_decaying=True), EventKind.DECAY_STARTED, ["bank empty, decaying"]

    if tier.is_apex and league_points < APEX_IMMUNITY_LP:
        # below 75LP while decaying reads as having dropped back to diamond
        updated = replace(link, remaining_decay_days=DIAMOND_RESET_DAYS, is_decaying=False, is_special=True)
        return updated, EventKind.RESET, ["apex account decayed under 75LP, bank reset to 28, flagged special"]

    return link, EventKind.NO_OP, []


def _event(
    kind: EventKind,
    account: Account,
    before: UserAccountLink,
    after: UserAccountLink,
    *,
    previous_tier: Optional[Tier],
    games_played: int = 0,
    latest_game_id: Optional[str] = None,
    notes: Sequence[str] = (),
) -> ReconcileEvent:
    return ReconcileEvent(
        kind=kind,
        riot_id=account.riot_id,
        previous_decay_days=before.remaining_decay_days,
        current_decay_days=after.remaining_decay_days,
        games_played=games_played,
        previous_tier=previous_tier,
        current_tier=account.tier,
        is_decaying=after.is_decaying,
        is_special=after.is_special,
        latest_game_id=latest_game_id,
        notes=list(notes),
    )


def reconcile(account: Account, link: UserAccountLink, snapshot: AccountSnapshot) -> ReconcileResult:
    """Merge a fresh snapshot into persisted state (steps 1-3)."""
    previous_tier = account.tier
    rank = snapshot.rank
    if not rank.is_ranked:
        # no solo/duo entry upstream; keep the last known ladder position
        rank = RankSnapshot(tier=account.tier, division=account.division, league_points=account.league_points)
    refreshed = replace(
        account,
        profile_icon_id=snapshot.profile.icon_id,
        summoner_level=snapshot.profile.level,
        tier=rank.tier,
        division=rank.division,
        league_points=rank.league_points,
    )

    new_games = count_new_games(account.last_solo_duo_game_id, snapshot.match_ids)

    after_tiers, notes = apply_tier_transitions(link, previous_tier, rank)
    after_games, accrual_notes, immunity_broken = accrue_decay_days(after_tiers, rank.tier, new_games)
    notes = notes + accrual_notes

    latest_game_id = snapshot.match_ids[0] if snapshot.match_ids else None
    if latest_game_id is not None and latest_game_id != account.last_solo_duo_game_id:
        refreshed = replace(refreshed, last_solo_duo_game_id=latest_game_id)

    after_games.check_invariants(ceiling_tier(refreshed.tier, after_games))

    if immunity_broken:
        kind = EventKind.RESET
    elif after_games.remaining_decay_days != after_tiers.remaining_decay_days:
        kind = EventKind.ACCRUED
    elif after_tiers.remaining_decay_days != link.remaining_decay_days or previous_tier is not rank.tier:
        kind = EventKind.TIER_CHANGED
    elif new_games > 0:
        # games below diamond, or a bank already at its ceiling
        kind = EventKind.ACCRUED if after_games != link else EventKind.NO_OP
    else:
        kind = EventKind.NO_OP

    event = _event(
        kind, refreshed, link, after_games,
        previous_tier=previous_tier,
        games_played=new_games,
        latest_game_id=refreshed.last_solo_duo_game_id if latest_game_id else None,
        notes=notes,
    )
    return ReconcileResult(account=refreshed, link=after_games, event=event)


def decrement(account: Account, link: UserAccountLink) -> ReconcileResult:
    """Daily countdown (step 4) from persisted state only."""
    updated, kind, notes = apply_daily_decrement(link, account.tier, account.league_points)
    updated.check_invariants(ceiling_tier(account.tier, updated))
    event = _event(kind, account, link, updated, previous_tier=account.tier, notes=notes)
    return ReconcileResult(account=account, link=updated, event=event)
