"""Game engine for Indian Rummy practice games: orchestrates the full game flow."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from src.db.repository import GameRepository
from src.game.bot import BotContext, BotDecision, get_bot_decision
from src.game.deck import (
    create_decks,
    deal_cards,
    discard_card,
    draw_from_discard,
    draw_from_pile,
    refill_draw_pile,
    shuffle_cards,
)
from src.game.declaration import validate_declaration
from src.game.hand import add_card_to_hand, exclude_cards, remove_card_from_hand
from src.game.models import Card, GameConfig, GameState, Meld, Player, RoundResult, RoundState
from src.game.scoring import (
    calculate_round_scores,
    determine_game_winner,
    get_active_players,
    get_pool_limit,
    should_game_end,
    update_cumulative_scores,
)
from src.utils.constants import (
    ACTION_DECLARE,
    ACTION_DROP,
    MAX_PLAYERS,
    MIN_PLAYERS,
    OUTCOME_DROP_FIRST,
    OUTCOME_DROP_MIDDLE,
    OUTCOME_INVALID,
    OUTCOME_VALID,
    PHASE_DISCARD,
    PHASE_DRAW,
    SOURCE_DECK,
    SOURCE_DISCARD,
    STATUS_FINISHED,
    STATUS_PLAYING,
    STATUS_ROUND_END,
    VARIANT_POINTS,
)
from src.utils.rng import create_rng, derive_rng

logger = logging.getLogger("rummy.engine")


@dataclass
class ActionResult:
    success: bool
    game: GameState | None
    error: str | None = None
    events: list[dict] = field(default_factory=list)


class GameEngine:
    """Stateless game engine. All state lives in GameState / repository."""

    def __init__(
        self, repo: GameRepository, rng: random.Random | None = None
    ) -> None:
        self._repo = repo
        self._rng = rng or create_rng()

    def create_game(
        self,
        players: list[Player],
        config: GameConfig | None = None,
        seed: int | None = None,
    ) -> GameState:
        """Create a new game. Does NOT deal cards yet (call start_round).

        With a seed every round's shuffle is reproducible.
        Raises ValueError for an unsupported table size.
        """
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValueError(
                f"Players must be between {MIN_PLAYERS} and {MAX_PLAYERS}, got {len(players)}"
            )
        player_ids = [p.player_id for p in players]
        if len(set(player_ids)) != len(player_ids):
            raise ValueError("Player ids must be unique")

        game = GameState(
            game_id=GameState.new_game_id(),
            config=config or GameConfig(),
            players=list(players),
            active_players=player_ids,
            scores={pid: 0 for pid in player_ids},
            seed=seed,
            updated_at=self._now(),
        )
        self._repo.save_game(game)
        event = {
            "event": "game_created",
            "game_id": game.game_id,
            "variant": game.config.variant,
            "players": player_ids,
        }
        logger.info(json.dumps(event))
        return self._repo.get_game(game.game_id)

    def start_round(self, game_id: str) -> ActionResult:
        """Start a new deal: shuffle, deal, reveal the wild joker, set first player."""
        game = self._repo.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")
        if game.status == STATUS_FINISHED:
            return ActionResult(success=False, game=game, error="The game is over")
        if game.current_round is not None and not game.current_round.ended:
            return ActionResult(success=False, game=game, error="A round is already in progress")

        active_ids = list(game.active_players)
        round_number = len(game.round_results) + 1
        rng = derive_rng(game.seed, f"round-{round_number}") if game.seed is not None else self._rng
        deck = shuffle_cards(create_decks(len(active_ids)), rng)
        dealt = deal_cards(deck, active_ids)

        # Dealer rotates each deal; first player sits left of the dealer
        dealer_index = (round_number - 1) % len(active_ids)
        game.current_round = RoundState(
            round_number=round_number,
            hands=dealt.hands,
            draw_pile=dealt.draw_pile,
            discard_pile=dealt.discard_pile,
            wild_joker_card=dealt.wild_joker_card,
            dealer_index=dealer_index,
            current_player_index=(dealer_index + 1) % len(active_ids),
            in_play=active_ids,
            turns_taken={pid: 0 for pid in active_ids},
        )
        game.status = STATUS_PLAYING
        game.updated_at = self._now()

        self._repo.save_game(game)
        game = self._repo.get_game(game_id)

        event = {
            "event": "round_start",
            "game_id": game_id,
            "round": round_number,
            "dealer": active_ids[dealer_index],
            "first_player": game.current_round.current_player_id,
            "wild_joker": dealt.wild_joker_card.compact() if dealt.wild_joker_card else None,
            "players_cards": {pid: len(h) for pid, h in dealt.hands.items()},
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def process_draw(
        self, game_id: str, player_id: str, source: str
    ) -> ActionResult:
        """Draw a card from the stock or the discard pile.

        source: "deck" or "discard"
        """
        game = self._repo.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")

        error = self._validate_turn(game, player_id, PHASE_DRAW)
        if error:
            return ActionResult(success=False, game=game, error=error)

        rnd = game.current_round
        if source == SOURCE_DISCARD:
            if not rnd.discard_pile:
                return ActionResult(success=False, game=game, error="The discard pile is empty")
            card, rnd.discard_pile = draw_from_discard(rnd.discard_pile)
            rnd.drawn_from_discard = card
        elif source == SOURCE_DECK:
            if not rnd.draw_pile:
                try:
                    rnd.draw_pile, rnd.discard_pile = refill_draw_pile(
                        rnd.draw_pile, rnd.discard_pile, self._rng
                    )
                except ValueError:
                    return ActionResult(success=False, game=game, error="No cards left to draw")
            card, rnd.draw_pile = draw_from_pile(rnd.draw_pile)
            rnd.drawn_from_discard = None
        else:
            return ActionResult(success=False, game=game, error=f"Invalid source: {source}")

        rnd.hands[player_id] = add_card_to_hand(rnd.hands[player_id], card)
        rnd.turn_phase = PHASE_DISCARD

        game.updated_at = self._now()
        self._repo.save_game(game)
        game = self._repo.get_game(game_id)

        event = {
            "event": "draw",
            "game_id": game_id,
            "player_id": player_id,
            "source": source,
            "card_drawn": card.compact(),
            "deck_remaining": len(game.current_round.draw_pile),
            "hand_size": len(game.current_round.hands[player_id]),
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def process_discard(
        self, game_id: str, player_id: str, card: Card | None
    ) -> ActionResult:
        """Discard a card, ending the turn."""
        game = self._repo.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")

        error = self._validate_turn(game, player_id, PHASE_DISCARD)
        if error:
            return ActionResult(success=False, game=game, error=error)

        if card is None:
            return ActionResult(success=False, game=game, error="No card chosen to discard")

        rnd = game.current_round
        held = self._find_in_hand(rnd, player_id, card)
        if held is None:
            return ActionResult(success=False, game=game, error=f"Card {card.display()} is not in your hand")
        if rnd.drawn_from_discard is not None and held.id == rnd.drawn_from_discard.id:
            return ActionResult(
                success=False, game=game,
                error="You cannot discard the card you just picked up",
            )

        rnd.hands[player_id] = remove_card_from_hand(rnd.hands[player_id], held.id)
        rnd.discard_pile = discard_card(rnd.discard_pile, held)
        rnd.discard_history.append(held)
        self._advance_turn(rnd)

        game.updated_at = self._now()
        self._repo.save_game(game)
        game = self._repo.get_game(game_id)

        event = {
            "event": "discard",
            "game_id": game_id,
            "player_id": player_id,
            "card": held.compact(),
            "next_player": game.current_round.current_player_id,
        }
        logger.info(json.dumps(event))
        return ActionResult(success=True, game=game, events=[event])

    def process_declare(
        self,
        game_id: str,
        player_id: str,
        melds: list[Meld | list[Card]],
        discard: Card | None,
    ) -> ActionResult:
        """Declare with ``melds`` after closing with ``discard``.

        Cards of the hand not covered by the melds count as deadwood. A valid
        declaration wins the round; an invalid one costs the declarer the
        invalid-declaration penalty and takes them out of the round.
        """
        game = self._repo.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")

        error = self._validate_turn(game, player_id, PHASE_DISCARD)
        if error:
            return ActionResult(success=False, game=game, error=error)

        if discard is None:
            return ActionResult(success=False, game=game, error="No card chosen to discard")

        rnd = game.current_round
        closing = self._find_in_hand(rnd, player_id, discard)
        if closing is None:
            return ActionResult(success=False, game=game, error=f"Card {discard.display()} is not in your hand")

        remaining = exclude_cards(rnd.hands[player_id], [closing])
        by_id = {c.id: c for c in remaining}
        groups: list[Meld | list[Card]] = []
        for group in melds:
            cards = group.cards if isinstance(group, Meld) else list(group)
            missing = [c for c in cards if c.id not in by_id]
            if missing:
                return ActionResult(
                    success=False, game=game,
                    error=f"Card {missing[0].display()} is not in your hand",
                )
            resolved = [by_id[c.id] for c in cards]
            groups.append(replace(group, cards=tuple(resolved)) if isinstance(group, Meld) else resolved)

        used = [c for g in groups for c in (g.cards if isinstance(g, Meld) else g)]
        result = validate_declaration(groups, extra_deadwood=exclude_cards(remaining, used))

        rnd.hands[player_id] = remaining
        rnd.discard_pile = discard_card(rnd.discard_pile, closing)
        rnd.discard_history.append(closing)
        rnd.turns_taken[player_id] = rnd.turns_taken.get(player_id, 0) + 1

        event = {
            "event": "declare",
            "game_id": game_id,
            "player_id": player_id,
            "valid": result.is_valid,
            "errors": result.errors,
            "deadwood_points": result.deadwood_points,
        }
        logger.info(json.dumps(event))
        events = [event]

        if result.is_valid:
            self._end_round(game, player_id, OUTCOME_VALID, events, declared_by=player_id)
        else:
            self._eliminate_from_round(game, player_id, OUTCOME_INVALID, events)

        game.updated_at = self._now()
        self._repo.save_game(game)
        game = self._repo.get_game(game_id)
        # The declaration is processed either way; error carries why it failed
        error = None if result.is_valid else "; ".join(result.errors)
        return ActionResult(success=True, game=game, error=error, events=events)

    def process_drop(self, game_id: str, player_id: str) -> ActionResult:
        """Fold the hand before drawing. First drop if the player has not yet played a turn."""
        game = self._repo.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")

        error = self._validate_turn(game, player_id, PHASE_DRAW)
        if error:
            return ActionResult(success=False, game=game, error=error)

        rnd = game.current_round
        outcome = OUTCOME_DROP_FIRST if rnd.turns_taken.get(player_id, 0) == 0 else OUTCOME_DROP_MIDDLE
        events: list[dict] = []
        self._eliminate_from_round(game, player_id, outcome, events)

        game.updated_at = self._now()
        self._repo.save_game(game)
        game = self._repo.get_game(game_id)
        return ActionResult(success=True, game=game, events=events)

    def execute_bot_turn(self, game_id: str) -> ActionResult:
        """Play the current bot's whole turn: drop, or draw then discard/declare."""
        game = self._repo.get_game(game_id)
        if game is None:
            return ActionResult(success=False, game=None, error="Game not found")
        if not self._is_bot_turn(game):
            return ActionResult(success=False, game=game, error="It is not a bot's turn")

        player = game.get_player(game.current_round.current_player_id)
        events: list[dict] = []

        decision = self._bot_decision(game, player)
        if decision.action == ACTION_DROP:
            return self.process_drop(game_id, player.player_id)

        if game.current_round.turn_phase == PHASE_DRAW:
            result = self.process_draw(game_id, player.player_id, decision.source or SOURCE_DECK)
            if not result.success and decision.source == SOURCE_DISCARD:
                result = self.process_draw(game_id, player.player_id, SOURCE_DECK)
            if not result.success:
                return result
            events.extend(result.events)
            decision = self._bot_decision(result.game, player)

        if decision.action == ACTION_DECLARE:
            result = self.process_declare(game_id, player.player_id, decision.melds or [], decision.card)
        else:
            result = self.process_discard(game_id, player.player_id, decision.card)
        result.events = events + result.events
        return result

    def get_game(self, game_id: str) -> GameState | None:
        return self._repo.get_game(game_id)

    def get_top_discard(self, game_id: str) -> Card | None:
        game = self._repo.get_game(game_id)
        if game is None or game.current_round is None or not game.current_round.discard_pile:
            return None
        return game.current_round.discard_pile[-1]

    def is_bot_turn(self, game_id: str) -> bool:
        game = self._repo.get_game(game_id)
        return game is not None and self._is_bot_turn(game)

    # --- Private helpers ---

    def _bot_decision(self, game: GameState, player: Player) -> BotDecision:
        rnd = game.current_round
        pid = player.player_id
        context = BotContext(
            hand=list(rnd.hands[pid]),
            top_discard=rnd.discard_pile[-1] if rnd.discard_pile else None,
            discard_history=list(rnd.discard_history),
            turn_phase=rnd.turn_phase,
            is_first_turn=rnd.turns_taken.get(pid, 0) == 0,
            current_score=game.scores.get(pid, 0),
            pool_limit=get_pool_limit(game.config.variant, game.config.pool_limit),
            first_drop_penalty=game.config.first_drop_penalty,
            drawn_from_discard=rnd.drawn_from_discard,
        )
        return get_bot_decision(player.difficulty, context, self._rng)

    @staticmethod
    def _is_bot_turn(game: GameState) -> bool:
        rnd = game.current_round
        if game.status != STATUS_PLAYING or rnd is None or rnd.ended:
            return False
        player = game.get_player(rnd.current_player_id)
        return player is not None and player.is_bot

    @staticmethod
    def _find_in_hand(rnd: RoundState, player_id: str, card: Card) -> Card | None:
        for held in rnd.hands.get(player_id, []):
            if held.id == card.id:
                return held
        return None

    def _validate_turn(
        self, game: GameState, player_id: str, expected_phase: str
    ) -> str | None:
        """Validate that it's the player's turn and correct phase. Returns error or None."""
        rnd = game.current_round
        if game.status != STATUS_PLAYING or rnd is None or rnd.ended:
            return "No round is in progress"

        if player_id not in rnd.in_play:
            return "You are not playing this round"

        if rnd.current_player_id != player_id:
            return "It is not your turn"

        if rnd.turn_phase != expected_phase:
            return f"Wrong phase: expected {expected_phase}, current {rnd.turn_phase}"

        return None

    @staticmethod
    def _advance_turn(rnd: RoundState) -> None:
        """Move to the next player still in the round."""
        rnd.turns_taken[rnd.current_player_id] = rnd.turns_taken.get(rnd.current_player_id, 0) + 1
        rnd.current_player_index = (rnd.current_player_index + 1) % len(rnd.in_play)
        rnd.turn_phase = PHASE_DRAW
        rnd.drawn_from_discard = None

    def _eliminate_from_round(
        self, game: GameState, player_id: str, outcome: str, events: list[dict]
    ) -> None:
        """Charge a flat penalty and take the player out of the current round."""
        rnd = game.current_round
        cfg = game.config
        penalty = calculate_round_scores(
            {player_id: rnd.hands[player_id]},
            player_id,
            outcome,
            cfg.variant,
            cfg.first_drop_penalty,
            cfg.middle_drop_penalty,
            cfg.invalid_declaration_penalty,
            cfg.max_points,
        )[player_id]
        rnd.penalties[player_id] = penalty

        index = rnd.in_play.index(player_id)
        rnd.in_play.remove(player_id)
        if index < rnd.current_player_index:
            rnd.current_player_index -= 1
        rnd.current_player_index %= len(rnd.in_play)
        rnd.turn_phase = PHASE_DRAW
        rnd.drawn_from_discard = None

        event = {
            "event": "drop" if outcome != OUTCOME_INVALID else "invalid_declaration",
            "game_id": game.game_id,
            "player_id": player_id,
            "outcome": outcome,
            "penalty": penalty,
            "players_left": list(rnd.in_play),
        }
        events.append(event)
        logger.info(json.dumps(event))

        if len(rnd.in_play) == 1:
            self._end_round(game, rnd.in_play[0], outcome, events)

    def _end_round(
        self,
        game: GameState,
        winner_id: str,
        outcome: str,
        events: list[dict],
        declared_by: str | None = None,
    ) -> None:
        """Score the round, apply eliminations, then next round or game end."""
        rnd = game.current_round
        cfg = game.config

        round_scores = {pid: 0 for pid in rnd.hands}
        round_scores.update(rnd.penalties)
        if outcome == OUTCOME_VALID:
            round_scores.update(calculate_round_scores(
                {pid: rnd.hands[pid] for pid in rnd.in_play},
                winner_id,
                OUTCOME_VALID,
                cfg.variant,
                cfg.first_drop_penalty,
                cfg.middle_drop_penalty,
                cfg.invalid_declaration_penalty,
                cfg.max_points,
            ))
        round_scores[winner_id] = 0

        rnd.ended = True
        game.round_results.append(RoundResult(
            round_number=rnd.round_number,
            winner_id=winner_id,
            outcome=outcome,
            scores=round_scores,
            declared_by=declared_by,
        ))
        game.scores = update_cumulative_scores(game.scores, round_scores)

        end_event = {
            "event": "round_end",
            "game_id": game.game_id,
            "round": rnd.round_number,
            "winner": winner_id,
            "outcome": outcome,
            "round_scores": round_scores,
            "scores": dict(game.scores),
        }
        events.append(end_event)
        logger.info(json.dumps(end_event))

        survivors = get_active_players(game.active_players, game.scores, cfg.variant, cfg.pool_limit)
        for pid in game.active_players:
            if pid not in survivors:
                elim_event = {
                    "event": "elimination",
                    "game_id": game.game_id,
                    "player_id": pid,
                    "total_score": game.scores[pid],
                    "threshold": get_pool_limit(cfg.variant, cfg.pool_limit),
                }
                events.append(elim_event)
                logger.info(json.dumps(elim_event))
        if survivors:
            game.active_players = survivors

        player_ids = [p.player_id for p in game.players]
        finished = cfg.variant == VARIANT_POINTS or should_game_end(
            player_ids, game.scores, game.round_results,
            cfg.variant, cfg.number_of_deals, cfg.pool_limit,
        )
        if finished:
            game.status = STATUS_FINISHED
            game.winner = determine_game_winner(player_ids, game.scores, cfg.variant, cfg.pool_limit)
            if game.winner is None:
                game.winner = determine_game_winner(game.active_players, game.scores, VARIANT_POINTS)
            game_event = {
                "event": "game_end",
                "game_id": game.game_id,
                "winner": game.winner,
                "final_scores": dict(game.scores),
            }
            events.append(game_event)
            logger.info(json.dumps(game_event))
        else:
            game.status = STATUS_ROUND_END

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
