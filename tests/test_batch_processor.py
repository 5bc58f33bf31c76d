"""Tests for the batch passes and single-account reconciliation."""
import pytest

from application.services import CancellationToken
from domain.entities import EventKind, RankSnapshot, User
from domain.enums import Region, Tier
from domain.errors import LinkNotFound, UpstreamUnavailable


def _diamond(division="IV", lp=0):
    return RankSnapshot(tier=Tier.DIAMOND, division=division, league_points=lp)


# ── Daily decrement ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_daily_decrement_only_touches_diamond_and_above(processor, make_tracked, links):
    diamond = make_tracked("p-d", Tier.DIAMOND, 10)
    master = make_tracked("p-m", Tier.MASTER, 1)
    unranked = make_tracked("p-u", None, 5)
    emerald = make_tracked("p-e", Tier.EMERALD, -1)

    result = await processor.run_daily_decrement()

    assert result.total_found == 2
    assert result.processed == 2
    assert result.errors == []
    assert links.get(diamond.link.id).remaining_decay_days == 9
    assert links.get(master.link.id).remaining_decay_days == 0
    assert links.get(master.link.id).is_decaying is True
    assert links.get(unranked.link.id).remaining_decay_days == 5
    assert links.get(emerald.link.id).remaining_decay_days == -1


@pytest.mark.asyncio
async def test_scenario_d_unranked_account_is_excluded(processor, make_tracked, links):
    unranked = make_tracked("p-u", None, 5)
    before = links.get(unranked.link.id)

    result = await processor.run_daily_decrement()

    assert result.total_found == 0
    assert links.get(unranked.link.id) == before


@pytest.mark.asyncio
async def test_immune_apex_links_are_left_alone(processor, make_tracked, links):
    special = make_tracked("p-s", Tier.DIAMOND, -1, division="II", lp=75, is_special=True)

    result = await processor.run_daily_decrement()

    assert result.results[0].kind is EventKind.NO_OP
    assert links.get(special.link.id).remaining_decay_days == -1


@pytest.mark.asyncio
async def test_daily_decrement_can_target_one_region(processor, make_tracked, links):
    euw = make_tracked("p-euw", Tier.DIAMOND, 10, region=Region.EUW1)
    kr = make_tracked("p-kr", Tier.DIAMOND, 10, region=Region.KR)

    result = await processor.run_daily_decrement(region=Region.KR)

    assert result.region is Region.KR
    assert links.get(kr.link.id).remaining_decay_days == 9
    assert links.get(euw.link.id).remaining_decay_days == 10


@pytest.mark.asyncio
async def test_daily_decrement_continues_past_failures(processor, reconciliation, make_tracked, links, monkeypatch):
    first = make_tracked("p-1", Tier.DIAMOND, 10)
    broken = make_tracked("p-2", Tier.DIAMOND, 10)
    third = make_tracked("p-3", Tier.DIAMOND, 10)
    original = reconciliation.decrement_one

    def _flaky(account, link):
        if account.puuid == "p-2":
            raise RuntimeError("disk on fire")
        return original(account, link)

    monkeypatch.setattr(reconciliation, "decrement_one", _flaky)

    result = await processor.run_daily_decrement()

    assert result.processed == 3
    assert result.succeeded == 2
    assert [e.link_id for e in result.errors] == [broken.link.id]
    assert result.errors[0].error_type == "RuntimeError"
    assert links.get(first.link.id).remaining_decay_days == 9
    assert links.get(third.link.id).remaining_decay_days == 9


# ── Match history ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_match_history_credits_games_and_persists_both_rows(processor, provider, make_tracked, accounts, links):
    tracked = make_tracked("p-1", Tier.DIAMOND, 5, last_game="G1")
    provider.add("p-1", "p-1", "EUW", _diamond(lp=20), ["G4", "G3", "G2", "G1"])

    result = await processor.run_match_history_check()

    assert result.succeeded == 1
    assert result.results[0].kind is EventKind.ACCRUED
    assert links.get(tracked.link.id).remaining_decay_days == 26
    stored = accounts.get(tracked.account.id)
    assert stored.last_solo_duo_game_id == "G4"
    assert stored.league_points == 20
    assert stored.summoner_level == 300


@pytest.mark.asyncio
async def test_shared_account_is_fetched_once_and_credits_every_user(
    processor, provider, make_tracked, links, users
):
    other = users.create(User(auth_id="auth-2", email="two@example.com", name="Two"))
    mine = make_tracked("p-s", Tier.DIAMOND, 5, last_game="G1")
    theirs = make_tracked("p-s", Tier.DIAMOND, 10, last_game="G1", user_id=other.id)
    provider.add("p-s", "p-s", "EUW", _diamond(), ["G3", "G2", "G1"])

    result = await processor.run_match_history_check()

    assert result.succeeded == 2
    assert provider.fetches_for("p-s") == 1
    assert links.get(mine.link.id).remaining_decay_days == 19
    assert links.get(theirs.link.id).remaining_decay_days == 24


@pytest.mark.asyncio
async def test_match_history_continues_past_provider_failures(processor, provider, make_tracked, links):
    ok = make_tracked("p-ok", Tier.DIAMOND, 5, last_game="G1")
    down = make_tracked("p-down", Tier.DIAMOND, 5, last_game="G1")
    provider.add("p-ok", "p-ok", "EUW", _diamond(), ["G2", "G1"])
    provider.add("p-down", "p-down", "EUW", _diamond(), ["G2", "G1"])
    provider.failures["p-down"] = UpstreamUnavailable("HTTP 503", status_code=503)

    result = await processor.run_match_history_check()

    assert result.processed == 2
    assert result.succeeded == 1
    assert result.errors[0].link_id == down.link.id
    assert result.errors[0].riot_id == "p-down#EUW"
    assert links.get(ok.link.id).remaining_decay_days == 12
    assert links.get(down.link.id).remaining_decay_days == 5


@pytest.mark.asyncio
async def test_cancelled_before_start_processes_nothing(processor, provider, make_tracked):
    make_tracked("p-1")
    provider.add("p-1", "p-1", "EUW", _diamond())
    token = CancellationToken()
    token.cancel()

    result = await processor.run_match_history_check(cancel=token)

    assert result.cancelled is True
    assert result.processed == 0
    assert provider.calls == []


@pytest.mark.asyncio
async def test_cancellation_is_checked_between_accounts(reconciliation, links, make_tracked):
    from application.services import BatchProcessor

    for puuid in ("p-1", "p-2", "p-3"):
        make_tracked(puuid, Tier.DIAMOND, 10)
    token = CancellationToken()
    processor = BatchProcessor(reconciliation, links, progress_callback=lambda done, total: token.cancel())

    result = await processor.run_daily_decrement(cancel=token)

    assert result.cancelled is True
    assert result.processed == 1
    assert result.finished_at is not None


@pytest.mark.asyncio
async def test_batch_result_serialises(processor, make_tracked):
    make_tracked("p-1", Tier.DIAMOND, 3)

    payload = (await processor.run_daily_decrement(region=Region.EUW1)).to_dict()

    assert payload["batch"] == "daily_decrement"
    assert payload["region"] == "EUW1"
    assert payload["results"][0]["current_decay_days"] == 2
    assert payload["errors"] == []


# ── Single account ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_refresh_link(reconciliation, provider, make_tracked):
    tracked = make_tracked("p-1", Tier.DIAMOND, 3, division="I", lp=90, last_game="G1")
    provider.add("p-1", "p-1", "EUW", RankSnapshot(tier=Tier.MASTER, league_points=0), ["G1"])

    outcome = await reconciliation.refresh_link(tracked.link.id)

    assert outcome.link.remaining_decay_days == 14
    assert outcome.account.tier is Tier.MASTER


@pytest.mark.asyncio
async def test_refresh_unknown_link(reconciliation):
    with pytest.raises(LinkNotFound):
        await reconciliation.refresh_link(999)


@pytest.mark.asyncio
async def test_failed_fetch_writes_nothing(reconciliation, provider, make_tracked, accounts, links):
    tracked = make_tracked("p-1", Tier.DIAMOND, 5, last_game="G1")
    provider.failures["p-1"] = UpstreamUnavailable("timeout")

    with pytest.raises(UpstreamUnavailable):
        await reconciliation.reconcile_one(tracked.account, tracked.link)

    assert links.get(tracked.link.id).remaining_decay_days == 5
    assert accounts.get(tracked.account.id).last_solo_duo_game_id == "G1"


@pytest.mark.asyncio
async def test_unchanged_poll_writes_nothing(reconciliation, provider, make_tracked, accounts, links):
    tracked = make_tracked("p-1", Tier.DIAMOND, 5, last_game="G1")
    provider.add("p-1", "p-1", "EUW", _diamond(), ["G2", "G1"])
    await reconciliation.reconcile_one(tracked.account, tracked.link)
    stored_account = accounts.get(tracked.account.id)
    stored_link = links.get(tracked.link.id)

    again = await reconciliation.reconcile_one(stored_account, stored_link)

    assert again.event.kind is EventKind.NO_OP
    assert links.get(tracked.link.id).last_updated == stored_link.last_updated
    assert accounts.get(tracked.account.id).last_updated == stored_account.last_updated


@pytest.mark.asyncio
async def test_unranked_poll_keeps_account_in_daily_population(processor, provider, make_tracked, accounts, links):
    tracked = make_tracked("p-1", Tier.DIAMOND, 10, last_game="G1")
    provider.add("p-1", "p-1", "EUW", match_ids=["G1"])

    await processor.run_match_history_check()
    result = await processor.run_daily_decrement()

    assert accounts.get(tracked.account.id).tier is Tier.DIAMOND
    assert result.total_found == 1
    assert links.get(tracked.link.id).remaining_decay_days == 9
