from __future__ import annotations

from mulescourt.engine.actions import NameChoice, TargetChoice
from mulescourt.engine.effects import (
    apply_card_effect,
    auto_discard_first_speaker,
    check_first_speaker_auto_discard,
)
from mulescourt.engine.serialize import snapshot


def _players_and_deck(state) -> dict[str, object]:
    snap = snapshot(state)
    return {"players": snap["players"], "deck": snap["deck"]}


def test_informant_eliminates_every_holder_of_named_card(table) -> None:
    state = table.game([["mule"], ["ebling-mis"], ["ebling-mis"], ["magnifico"]])
    played = table.card("informant")
    res = apply_card_effect(state, played, "player-0", NameChoice("ebling-mis"))
    assert res.eliminated_players == ("player-1", "player-2")
    assert [p.is_eliminated for p in state.players] == [False, True, True, False]
    assert "Eliminated 2" in res.message


def test_informant_skips_protected_and_self(table) -> None:
    state = table.game([["mule"], ["mule"], ["informant"]])
    state.players[1].is_protected = True
    res = apply_card_effect(state, table.card("informant"), "player-0", NameChoice("mule"))
    assert res.eliminated_players == ()
    assert not any(p.is_eliminated for p in state.players)
    assert res.message == "No one has The Mule"


def test_informant_cannot_name_informant(table) -> None:
    state = table.game([["mule"], ["informant"]])
    before = _players_and_deck(state)
    res = apply_card_effect(state, table.card("informant"), "player-0", NameChoice("informant"))
    assert res.eliminated_players == ()
    assert _players_and_deck(state) == before


def test_informant_without_choice_is_noop(table) -> None:
    state = table.game([["mule"], ["ebling-mis"]])
    before = snapshot(state)
    res = apply_card_effect(state, table.card("informant"), "player-0", None)
    assert res.message == "No character named"
    assert snapshot(state) == before
    res = apply_card_effect(state, table.card("informant"), "player-0", TargetChoice("player-1"))
    assert res.message == "No character named"
    assert snapshot(state) == before


def test_view_hand_is_a_pure_read(table) -> None:
    for card_type in ("han-pritcher", "bail-channis"):
        state = table.game([["mule"], ["mayor-indbur"]])
        before = snapshot(state)
        res = apply_card_effect(state, table.card(card_type), "player-0", TargetChoice("player-1"))
        assert res.viewed_hand is not None
        assert [c.type for c in res.viewed_hand] == ["mayor-indbur"]
        assert snapshot(state) == before


def test_view_hand_of_protected_player_is_refused(table) -> None:
    state = table.game([["mule"], ["mayor-indbur"]])
    state.players[1].is_protected = True
    res = apply_card_effect(state, table.card("han-pritcher"), "player-0", TargetChoice("player-1"))
    assert res.viewed_hand is None
    assert res.message == "Invalid target"


def test_compare_eliminates_lower_hand(table) -> None:
    state = table.game([["mule"], ["informant"]])
    res = apply_card_effect(state, table.card("ebling-mis"), "player-0", TargetChoice("player-1"))
    assert res.eliminated_players == ("player-1",)
    assert state.players[1].is_eliminated
    assert not state.players[0].is_eliminated


def test_compare_can_eliminate_the_actor(table) -> None:
    state = table.game([["informant"], ["first-speaker"]])
    res = apply_card_effect(state, table.card("magnifico"), "player-0", TargetChoice("player-1"))
    assert res.eliminated_players == ("player-0",)
    assert state.players[0].is_eliminated


def test_compare_tie_eliminates_nobody(table) -> None:
    state = table.game([["bayta-darell"], ["toran-darell"]])
    res = apply_card_effect(state, table.card("ebling-mis"), "player-0", TargetChoice("player-1"))
    assert res.eliminated_players == ()
    assert not any(p.is_eliminated for p in state.players)
    assert res.message.startswith("Tie")


def test_shielded_mind_protects_actor(table) -> None:
    state = table.game([["mule"], ["informant"]])
    apply_card_effect(state, table.card("shielded-mind"), "player-0")
    assert state.players[0].is_protected
    assert not state.players[1].is_protected


def test_darell_discards_and_draws_even_through_protection(table) -> None:
    state = table.game([["informant"], ["mule"]], deck=["informant", "first-speaker"])
    state.players[1].is_protected = True
    res = apply_card_effect(state, table.card("bayta-darell"), "player-0", TargetChoice("player-1"))
    target = state.players[1]
    assert [c.type for c in target.discard_pile] == ["mule"]
    assert [c.type for c in target.hand] == ["first-speaker"]
    assert len(state.deck) == 1
    assert not target.is_eliminated
    assert "drew 1" in res.message


def test_darell_may_target_self(table) -> None:
    state = table.game([["informant"], ["mule"]], deck=["magnifico"])
    apply_card_effect(state, table.card("toran-darell"), "player-0", TargetChoice("player-0"))
    actor = state.players[0]
    assert [c.type for c in actor.discard_pile] == ["informant"]
    assert [c.type for c in actor.hand] == ["magnifico"]
    assert state.deck == []


def test_darell_with_empty_deck_leaves_empty_hand(table) -> None:
    state = table.game([["informant"], ["mule"]], deck=[])
    apply_card_effect(state, table.card("toran-darell"), "player-0", TargetChoice("player-1"))
    assert state.players[1].hand == []
    assert [c.type for c in state.players[1].discard_pile] == ["mule"]


def test_mayor_swaps_hands(table) -> None:
    state = table.game([["informant"], ["mule"]])
    mine = list(state.players[0].hand)
    theirs = list(state.players[1].hand)
    apply_card_effect(state, table.card("mayor-indbur"), "player-0", TargetChoice("player-1"))
    assert state.players[0].hand == theirs
    assert state.players[1].hand == mine


def test_targeted_card_without_target_is_noop(table) -> None:
    for card_type in ("ebling-mis", "mayor-indbur", "bayta-darell"):
        state = table.game([["informant"], ["mule"]])
        before = snapshot(state)
        res = apply_card_effect(state, table.card(card_type), "player-0", None)
        assert res.message == "No target selected"
        assert snapshot(state) == before
        res = apply_card_effect(state, table.card(card_type), "player-0", NameChoice("mule"))
        assert res.message == "No target selected"
        assert snapshot(state) == before


def test_first_speaker_played_has_no_effect(table) -> None:
    state = table.game([["informant"], ["mule"]])
    before = snapshot(state)
    res = apply_card_effect(state, table.card("first-speaker"), "player-0")
    assert res.eliminated_players == ()
    assert snapshot(state) == before


def test_mule_eliminates_actor(table) -> None:
    state = table.game([["informant"], ["magnifico"]])
    res = apply_card_effect(state, table.card("mule"), "player-0")
    assert res.eliminated_players == ("player-0",)
    assert state.players[0].is_eliminated


def test_first_speaker_auto_discard(table) -> None:
    state = table.game([["first-speaker", "bayta-darell"], ["magnifico"]])
    player = state.players[0]
    assert check_first_speaker_auto_discard(player)
    auto_discard_first_speaker(state, "player-0")
    assert [c.type for c in player.hand] == ["bayta-darell"]
    assert [c.type for c in player.discard_pile] == ["first-speaker"]
    assert not check_first_speaker_auto_discard(player)


def test_no_auto_discard_without_dangerous_card(table) -> None:
    state = table.game([["first-speaker", "mule"], ["magnifico"]])
    assert not check_first_speaker_auto_discard(state.players[0])
