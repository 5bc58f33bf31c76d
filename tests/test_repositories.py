"""Tests for the SQLite repositories and the transaction helper."""
import pytest

from domain.entities import Account, User, UserAccountLink
from domain.enums import Region, Tier
from domain.errors import DuplicateLinkError, PersistenceError
from domain.interfaces import LinkQueryOptions


def test_account_round_trip(accounts):
    saved = accounts.save(Account(
        puuid="p-1", game_name="Alpha", tag_line="EUW", region=Region.EUW1,
        tier=Tier.MASTER, league_points=120, last_solo_duo_game_id="EUW1_9",
    ))

    loaded = accounts.get(saved.id)
    assert loaded.puuid == "p-1"
    assert loaded.tier is Tier.MASTER
    assert loaded.region is Region.EUW1
    assert loaded.last_solo_duo_game_id == "EUW1_9"
    assert accounts.get_by_puuid("p-1").id == saved.id


def test_unranked_account_is_stored_with_null_tier(accounts):
    saved = accounts.save(Account(puuid="p-2", game_name="Beta", tag_line="NA1", region=Region.NA1))

    assert accounts.get(saved.id).tier is None


def test_find_or_create_upserts_by_identity(accounts):
    first = accounts.find_or_create(Account(
        puuid="p-1", game_name="Alpha", tag_line="EUW", region=Region.EUW1, last_solo_duo_game_id="G5",
    ))
    second = accounts.find_or_create(Account(
        puuid="p-1", game_name="Alpha Renamed", tag_line="EUW", region=Region.EUW1,
        tier=Tier.DIAMOND, division="I", last_solo_duo_game_id="G9",
    ))

    assert second.id == first.id
    assert second.game_name == "Alpha Renamed"
    assert second.tier is Tier.DIAMOND
    # the shared last seen game is owned by reconciliation, not registration
    assert second.last_solo_duo_game_id == "G5"


def test_duplicate_link_is_rejected(make_tracked, links, user):
    tracked = make_tracked("p-1")

    with pytest.raises(DuplicateLinkError):
        links.create(UserAccountLink(user_id=user.id, account_id=tracked.account.id))


def test_database_rejects_days_out_of_range(make_tracked, links):
    tracked = make_tracked("p-1")
    tracked.link.remaining_decay_days = 29

    with pytest.raises(PersistenceError):
        links.save(tracked.link)


def test_database_rejects_immune_and_decaying(make_tracked, links):
    tracked = make_tracked("p-1")
    tracked.link.remaining_decay_days = -1
    tracked.link.is_decaying = True

    with pytest.raises(PersistenceError):
        links.save(tracked.link)


def test_list_tracked_filters_by_tier_region_and_activity(make_tracked, links):
    diamond = make_tracked("p-d", Tier.DIAMOND, region=Region.EUW1)
    master = make_tracked("p-m", Tier.MASTER, region=Region.KR)
    make_tracked("p-u", None, region=Region.EUW1)
    make_tracked("p-e", Tier.EMERALD, -1, region=Region.EUW1)
    paused = make_tracked("p-x", Tier.DIAMOND, region=Region.EUW1)
    paused.link.is_active = False
    links.save(paused.link)

    tracked_tiers = frozenset(Tier.decay_tracked())
    decay_population = links.list_tracked(LinkQueryOptions(tiers=tracked_tiers))
    assert {t.account.puuid for t in decay_population} == {"p-d", "p-m"}

    euw_only = links.list_tracked(LinkQueryOptions(tiers=tracked_tiers, region=Region.EUW1))
    assert [t.link.id for t in euw_only] == [diamond.link.id]

    everyone = links.list_tracked(LinkQueryOptions(include_inactive=True))
    assert len(everyone) == 5
    assert master.link.id in {t.link.id for t in everyone}


def test_list_tracked_with_empty_tier_filter_is_empty(make_tracked, links):
    make_tracked("p-1")

    assert links.list_tracked(LinkQueryOptions(tiers=frozenset())) == []


def test_list_for_user_only_returns_that_users_links(make_tracked, links, users):
    other = users.create(User(auth_id="auth-2", email="two@example.com", name="Two"))
    make_tracked("p-1")
    make_tracked("p-1", user_id=other.id)
    make_tracked("p-2", user_id=other.id)

    assert {t.account.puuid for t in links.list_for_user(other.id)} == {"p-1", "p-2"}


def test_deleting_user_cascades_links(make_tracked, links, users, user):
    make_tracked("p-1")
    make_tracked("p-2")

    users.delete(user.id)

    assert users.get(user.id) is None
    assert links.list_tracked(LinkQueryOptions(include_inactive=True)) == []


def test_user_email_is_normalised(users, user):
    assert users.get_by_auth_id("auth-1").email == "player@example.com"


def test_transaction_rolls_back_both_rows(db, accounts, links, make_tracked):
    tracked = make_tracked("p-1", days=10)
    tracked.account.league_points = 99
    tracked.link.remaining_decay_days = 29

    with pytest.raises(PersistenceError):
        with db.transaction():
            accounts.save(tracked.account)
            links.save(tracked.link)

    assert accounts.get(tracked.account.id).league_points == 0
    assert links.get(tracked.link.id).remaining_decay_days == 10
