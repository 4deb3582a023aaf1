from __future__ import annotations

from dataclasses import dataclass

from .actions import Choice, NameChoice, TargetChoice
from .state import GameState, PlayerState
from .types import DANGEROUS_TYPES, DARELL_TYPES, Card, is_card_type


@dataclass(frozen=True)
class EffectResult:
    message: str
    eliminated_players: tuple[str, ...] = ()
    viewed_hand: tuple[Card, ...] | None = None


def _emit(state: GameState, event_type: str, **data: object) -> None:
    state.event_log.append({"type": event_type, **data})


def _eliminate(state: GameState, player: PlayerState, cause: str) -> None:
    player.is_eliminated = True
    _emit(state, "PLAYER_ELIMINATED", player=player.id, cause=cause)


def _resolve_target(state: GameState, actor_id: str, choice: Choice | None, card: Card) -> PlayerState | str:
    """Returns the chosen target, or an informational message when there is none."""
    if not isinstance(choice, TargetChoice):
        return "No target selected"
    target = state.player(choice.target_player_id)
    if target is None or target.is_eliminated:
        return "Invalid target"
    if card.type not in DARELL_TYPES:
        if target.id == actor_id or target.is_protected:
            return "Invalid target"
    return target


def _informant(state: GameState, actor: PlayerState, card: Card, choice: Choice | None) -> EffectResult:
    if not isinstance(choice, NameChoice) or not is_card_type(choice.named_character):
        return EffectResult(message="No character named")
    named = choice.named_character
    if named == "informant":
        return EffectResult(message="The Informant cannot name another Informant")

    eliminated: list[str] = []
    for p in state.players:
        if p.id == actor.id or p.is_eliminated or p.is_protected:
            continue
        if any(c.type == named for c in p.hand):
            _eliminate(state, p, cause=card.type)
            eliminated.append(p.id)

    name = state.catalog.name_of(named)
    if eliminated:
        return EffectResult(
            message=f"Eliminated {len(eliminated)} player(s) with {name}!",
            eliminated_players=tuple(eliminated),
        )
    return EffectResult(message=f"No one has {name}")


def _view_hand(state: GameState, actor: PlayerState, card: Card, choice: Choice | None) -> EffectResult:
    target = _resolve_target(state, actor.id, choice, card)
    if isinstance(target, str):
        return EffectResult(message=target)
    # Pure read: the cards go back to the caller alone.
    return EffectResult(message=f"Viewing {target.name}'s hand", viewed_hand=tuple(target.hand))


def _compare_hands(state: GameState, actor: PlayerState, card: Card, choice: Choice | None) -> EffectResult:
    target = _resolve_target(state, actor.id, choice, card)
    if isinstance(target, str):
        return EffectResult(message=target)

    mine = actor.hand_value()
    theirs = target.hand_value()
    _emit(state, "HANDS_COMPARED", player=actor.id, target=target.id)
    if mine == theirs:
        return EffectResult(message=f"Tie! Both have {mine}")
    loser = target if mine > theirs else actor
    _eliminate(state, loser, cause=card.type)
    if loser is actor:
        message = f"{actor.name} lost the comparison ({mine} vs {theirs})"
    else:
        message = f"{actor.name} won the comparison ({mine} vs {theirs})"
    return EffectResult(message=message, eliminated_players=(loser.id,))


def _shield(state: GameState, actor: PlayerState) -> EffectResult:
    actor.is_protected = True
    _emit(state, "PLAYER_PROTECTED", player=actor.id)
    return EffectResult(message="Protected until your next turn")


def _force_discard(state: GameState, actor: PlayerState, card: Card, choice: Choice | None) -> EffectResult:
    target = _resolve_target(state, actor.id, choice, card)
    if isinstance(target, str):
        return EffectResult(message=target)

    discarded = list(target.hand)
    target.discard_pile.extend(discarded)
    target.hand = []
    _emit(state, "HAND_DISCARDED", player=target.id, card_ids=[c.id for c in discarded])

    if not state.deck:
        return EffectResult(message=f"{target.name} discarded {len(discarded)} card(s); the deck is empty")
    drawn = state.deck.pop()
    target.hand.append(drawn)
    _emit(state, "CARD_DRAWN", player=target.id, card_id=drawn.id)
    return EffectResult(message=f"{target.name} discarded {len(discarded)} card(s) and drew 1")


def _swap_hands(state: GameState, actor: PlayerState, card: Card, choice: Choice | None) -> EffectResult:
    target = _resolve_target(state, actor.id, choice, card)
    if isinstance(target, str):
        return EffectResult(message=target)
    actor.hand, target.hand = target.hand, actor.hand
    _emit(state, "HANDS_SWAPPED", player=actor.id, target=target.id)
    return EffectResult(message=f"Traded hands with {target.name}")


def _mule(state: GameState, actor: PlayerState, card: Card) -> EffectResult:
    _eliminate(state, actor, cause=card.type)
    return EffectResult(
        message=f"{actor.name} revealed The Mule and is eliminated!",
        eliminated_players=(actor.id,),
    )


def apply_card_effect(
    state: GameState, played_card: Card, acting_player_id: str, choice: Choice | None = None
) -> EffectResult:
    """Apply the ability of `played_card` to `state` in place.

    The choice is assumed to have been validated already; a missing or
    unusable choice leaves the state untouched and only yields a message.
    """
    actor = state.player(acting_player_id)
    if actor is None:
        return EffectResult(message="Unknown player")

    t = played_card.type
    if t == "informant":
        return _informant(state, actor, played_card, choice)
    if t in ("han-pritcher", "bail-channis"):
        return _view_hand(state, actor, played_card, choice)
    if t in ("ebling-mis", "magnifico"):
        return _compare_hands(state, actor, played_card, choice)
    if t == "shielded-mind":
        return _shield(state, actor)
    if t in ("bayta-darell", "toran-darell"):
        return _force_discard(state, actor, played_card, choice)
    if t == "mayor-indbur":
        return _swap_hands(state, actor, played_card, choice)
    if t == "first-speaker":
        return EffectResult(message="The First Speaker remains hidden...")
    if t == "mule":
        return _mule(state, actor, played_card)
    raise AssertionError(f"Unhandled card type: {t}")


def check_first_speaker_auto_discard(player: PlayerState) -> bool:
    if not any(c.type == "first-speaker" for c in player.hand):
        return False
    return any(c.type in DANGEROUS_TYPES for c in player.hand)


def auto_discard_first_speaker(state: GameState, player_id: str) -> GameState:
    """Move the First Speaker straight to the discard pile, without resolving it."""
    player = state.player(player_id)
    if player is None:
        return state
    for i, c in enumerate(player.hand):
        if c.type == "first-speaker":
            player.hand.pop(i)
            player.discard_pile.append(c)
            _emit(state, "FIRST_SPEAKER_DISCARDED", player=player.id, card_id=c.id)
            break
    return state


def describe_play(
    state: GameState, player: PlayerState, card: Card, choice: Choice | None = None
) -> str:
    description = f"{player.name} played {state.catalog.name_of(card.type)}"
    if isinstance(choice, TargetChoice):
        target = state.player(choice.target_player_id)
        if target is not None:
            description += f" targeting {target.name}"
    elif isinstance(choice, NameChoice) and is_card_type(choice.named_character):
        description += f" naming {state.catalog.name_of(choice.named_character)}"
    return description
