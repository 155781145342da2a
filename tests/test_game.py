import datetime
import random

import pytest

from dipgame import game as gm
from dipgame.game import (
    AllocationMethod,
    FilterReason,
    Game,
    GameError,
    ViewerStats,
    remove_custom_filtered,
    remove_filtered,
    sort_games,
    validate_new_game,
)
from dipgame.member import GameMasterInvitation, Member, User

NATIONS = ["Austria", "England", "France", "Germany", "Italy", "Russia", "Turkey"]
UTC = datetime.timezone.utc
T0 = datetime.datetime(2020, 1, 1, tzinfo=UTC)


def member(uid, nation="", **kwargs):
    return Member(user=User(id=uid, email=f"{uid}@example.com"), nation=nation, **kwargs)


def staging(**kwargs):
    base = dict(variant="Classical", phase_length_minutes=60)
    base.update(kwargs)
    return Game(**base)


def test_sort_games_fullest_then_oldest():
    a = Game(n_members=2, created_at=T0 + datetime.timedelta(hours=1))
    b = Game(n_members=3, created_at=T0 + datetime.timedelta(hours=5))
    c = Game(n_members=2, created_at=T0)
    assert [id(g) for g in sort_games([a, b, c])] == [id(b), id(c), id(a)]


def test_remove_custom_filtered():
    games = [Game(desc="a", private=True), Game(desc="b"), Game(desc="c", private=True)]
    kept = remove_custom_filtered(games, [lambda g: g.private, lambda g: g.desc != "c"])
    assert [g.desc for g in kept] == ["a"]


def test_remove_filtered_marks_and_removes():
    games = [Game(max_hated=2.0), Game()]
    stats = ViewerStats(user=User(id="u"), hated=5.0)
    failures = remove_filtered(games, FilterReason.TO_JOIN, stats, False)
    assert failures == [["Hated"], []]
    assert len(games) == 2
    assert games[0].failed_requirements == ["Hated"]
    remove_filtered(games, FilterReason.TO_JOIN, stats, True)
    assert len(games) == 1
    assert games[0].max_hated == 0


def test_remove_filtered_invitation_only_when_joining():
    g = Game(game_master_enabled=True, require_game_master_invitation=True)
    stats = ViewerStats(user=User(id="u", email="u@example.com"))
    assert remove_filtered([g], FilterReason.TO_CREATE, stats, False) == [[]]
    assert remove_filtered([g], FilterReason.TO_JOIN, stats, False) == [["InvitationNeeded"]]
    g.game_master_invitations.append(GameMasterInvitation(email=" U@Example.com "))
    assert remove_filtered([g], FilterReason.TO_JOIN, stats, False) == [[]]


def test_remove_filtered_rating_bounds():
    g = Game(min_rating=10.0, max_rating=20.0, min_reliability=3.0)
    low = ViewerStats(rating=5.0, reliability=1.0)
    failures = remove_filtered([g], FilterReason.TO_JOIN, low, False)
    assert failures == [["MinRating", "MinReliability"]]


def test_can_merge_into():
    avoid = User(id="me")
    a = staging(n_members=1)
    b = staging(n_members=2, members=[member("x"), member("y")])
    assert a.can_merge_into(b, avoid, len(NATIONS))
    assert not a.can_merge_into(b, avoid, 2)
    assert not a.can_merge_into(staging(variant="Other"), avoid, len(NATIONS))
    assert not a.can_merge_into(staging(game_master_enabled=True), avoid, len(NATIONS))
    assert not a.can_merge_into(b, User(id="x"), len(NATIONS))
    assert not staging(no_merge=True).can_merge_into(b, avoid, len(NATIONS))


def test_refresh_computes_negative_ages():
    now = T0 + datetime.timedelta(days=2)
    g = Game(created_at=T0, started_at=T0 + datetime.timedelta(days=1))
    g.refresh(now)
    assert g.created_ago == T0 - now
    assert g.started_ago == g.started_at - now
    assert g.finished_ago is None


def test_abbr_nat():
    g = Game(members=[member("a", "Austria"), member("b", "Argentina"), member("c", "England")])
    assert g.abbr_nat("England") == "E"
    assert g.abbr_nat("Austria") == "Au"
    assert g.abbr_nat("X") == "X"


def test_abbr_nats_everyone():
    g = Game(members=[member("a", "Austria"), member("c", "England")])
    assert g.abbr_nats(["Austria", "England"], 2) == ["Everyone"]
    assert g.abbr_nats(["England"], 2) == ["E"]


def test_desc_for_uses_alias():
    g = Game(desc="Main", members=[member("a", "Austria", game_alias="Alias")])
    assert g.desc_for("Austria") == "Alias"
    assert g.desc_for("England") == "Main"


def test_member_lookup():
    m = member("a", "Austria")
    g = Game(members=[m])
    assert g.get_member_by_nation("Austria") is m
    assert g.get_member_by_user_id("a") is m
    assert g.get_member_by_user_id("zzz") is None
    assert g.get_member_by_nation("England") is None


def test_is_invited_ignores_case_and_format_chars():
    g = Game(game_master_invitations=[GameMasterInvitation(email="Foo@Example.com")])
    assert g.is_invited_by_game_master("  foo@example.com\u200b")
    assert not g.is_invited_by_game_master("bar@example.com")


def test_joinable():
    user = User(id="u", email="u@example.com")
    assert Game(n_members=1).joinable(user, 7)
    assert not Game(n_members=7).joinable(user, 7)
    assert not Game(failed_requirements=["Hated"]).joinable(user, 7)
    assert not Game(active_bans=[object()]).joinable(user, 7)
    full_gm = Game(
        closed=True,
        game_master_enabled=True,
        members=[member("x", replaceable=True)],
    )
    assert full_gm.joinable(user, 7)
    full_gm.require_game_master_invitation = True
    assert not full_gm.joinable(user, 7)
    full_gm.game_master_invitations.append(GameMasterInvitation(email="u@example.com"))
    assert full_gm.joinable(user, 7)
    assert not Game(game_master_enabled=True, require_game_master_invitation=True).joinable(user, 7)


def test_leavable_and_replaceable():
    assert Game().leavable()
    assert not Game(started=True).leavable()
    assert not Game(members=[member("a")]).has_replaceable_member()


def test_redact_game_master_sees_everything():
    g = Game(
        game_master=User(id="gm"),
        game_master_invitations=[GameMasterInvitation(email="x@example.com")],
        members=[member("a", "Austria")],
    )
    g.redact(User(id="gm"), "host.example.com")
    assert g.game_master_invitations[0].email == "x@example.com"
    assert g.members[0].user.email == "a@example.com"


def test_redact_hides_other_invitations_and_emails():
    g = Game(
        game_master_invitations=[
            GameMasterInvitation(email="x@example.com"),
            GameMasterInvitation(email="v@example.com"),
        ],
        members=[member("v", "Austria"), member("o", "England")],
    )
    g.redact(User(id="v", email="v@example.com"), "host.example.com")
    assert [i.email for i in g.game_master_invitations] == ["", "v@example.com"]
    assert g.members[0].user.email == "v@example.com"
    assert g.members[1].user.email == ""
    assert g.members[1].nation == ""


def test_redact_anonymous_private_game():
    g = Game(private=True, anonymous=True, members=[member("v"), member("o")])
    g.redact(User(id="v"), "host.example.com")
    assert g.members[0].user.id == "v"
    assert g.members[1].user.id == ""
    assert g.members[1].user.name == "Anonymous"
    assert g.members[1].user.picture.endswith("host.example.com/img/anon.png")


def test_valid_nation():
    assert Game().valid_nation("France", NATIONS)
    assert not Game().valid_nation("Spain", NATIONS)


def test_allocate_random_is_permutation():
    g = Game(members=[member(str(i)) for i in range(len(NATIONS))])
    g.allocate_nations(NATIONS, random.Random(1))
    assert sorted(m.nation for m in g.members) == sorted(NATIONS)


def test_allocate_preallocations_respected():
    g = Game(
        members=[member(str(i)) for i in range(len(NATIONS))],
        game_master_invitations=[GameMasterInvitation(email=" 3@EXAMPLE.com", nation="Turkey")],
    )
    g.allocate_nations(NATIONS, random.Random(2))
    assert g.members[3].nation == "Turkey"
    assert sorted(m.nation for m in g.members) == sorted(NATIONS)


def test_allocate_by_preference():
    members = [
        member(str(i), nation_preferences=nation) for i, nation in enumerate(reversed(NATIONS))
    ]
    g = Game(members=members, nation_allocation=AllocationMethod.PREFERENCE)
    g.allocate_nations(NATIONS, random.Random(3))
    assert [m.nation for m in g.members] == list(reversed(NATIONS))


def test_allocate_count_mismatch_raises():
    g = Game(members=[member("a")])
    with pytest.raises(GameError):
        g.allocate_nations(NATIONS)


def test_allocate_unknown_method_raises():
    g = Game(members=[member("a")], nation_allocation=7)
    with pytest.raises(GameError):
        g.allocate_nations(["Austria"])


def test_update_start_eta():
    now = T0 + datetime.timedelta(hours=3)
    started = Game(started=True, started_at=T0, members=[member("a")])
    started.update_start_eta(7, now)
    assert started.start_eta == T0
    assert started.n_members == 1
    lone = Game(created_at=T0, members=[member("a")])
    lone.update_start_eta(7, now)
    assert lone.start_eta == gm.FAR_FUTURE
    assert lone.start_eta.year == 2525
    pair = Game(created_at=T0, members=[member("a"), member("b")])
    pair.update_start_eta(7, now)
    trio = Game(created_at=T0, members=[member("a"), member("b"), member("c")])
    trio.update_start_eta(7, now)
    assert now < trio.start_eta < pair.start_eta
    full = Game(created_at=T0, members=[member("a"), member("b")])
    full.update_start_eta(2, now)
    assert full.start_eta == now


def test_validate_new_game_accepts_and_fills():
    creator = User(id="gm")
    g = validate_new_game(
        staging(game_master_enabled=True, private=True), ["Classical"], creator
    )
    assert g.game_master is creator
    assert g.first_member == Member()
    assert g.created_at is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(variant="Nope"),
        dict(phase_length_minutes=0),
        dict(phase_length_minutes=gm.MAX_PHASE_DEADLINE + 1),
        dict(game_master_enabled=True),
    ],
)
def test_validate_new_game_rejects(kwargs):
    with pytest.raises(GameError) as info:
        validate_new_game(staging(**kwargs), ["Classical"], User(id="u"))
    assert info.value.status == 400


def test_validate_new_game_accepts_max_deadline():
    g = validate_new_game(
        staging(phase_length_minutes=gm.MAX_PHASE_DEADLINE), ["Classical"], User(id="u")
    )
    assert g.game_master.id == ""