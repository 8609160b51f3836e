"""
tournamentflow/bracket.py - Single-elimination bracket generation and advancement.

The bracket is a list of rounds, each round a list of Match. All rounds are
built up front when the tournament starts; slots in later rounds stay None
until the feeding match is decided. The winner of match i in round r goes to
match i // 2 in round r + 1 (player1 for even i, player2 for odd i).

Odd entrant counts give the last match of the round a bye: only player1 is
set and the match completes as soon as that player is known.
"""

import logging
import random

from .errors import InvalidMatchResultError
from .models import Match, Player

logger = logging.getLogger(__name__)


def generate_bracket(players: list[Player], rng: random.Random | None = None) -> list[list[Match]]:
    """Shuffle the roster and build every round of the elimination tree."""
    shuffled = list(players)
    (rng or random).shuffle(shuffled)

    rounds: list[list[Match]] = []
    entrants: list[Player | None] = shuffled
    while len(entrants) > 1:
        round_index = len(rounds)
        matches = []
        for i in range(0, len(entrants), 2):
            if i + 1 < len(entrants):
                matches.append(Match(
                    round_index=round_index,
                    match_index=i // 2,
                    player1=entrants[i],
                    player2=entrants[i + 1],
                ))
            else:
                matches.append(Match(
                    round_index=round_index,
                    match_index=i // 2,
                    player1=entrants[i],
                    is_bye=True,
                ))
        rounds.append(matches)
        # Next round's entrants are unknown until results come in
        entrants = [None] * len(matches)

    if rounds:
        for match in rounds[0]:
            if match.is_bye:
                _complete_bye(rounds, match)

    logger.debug(f"Generated bracket: {len(players)} players, {len(rounds)} rounds")
    return rounds


def record_result(
    bracket: list[list[Match]],
    round_index: int,
    match_index: int,
    winner_address: str,
) -> tuple[Match, Player]:
    """Decide a head-to-head match and advance the winner.

    Returns (match, loser).

    Raises:
        InvalidMatchResultError: Unknown round/match, a bye, an already
            decided match, a match still waiting on a player, or a winner
            who isn't one of the two players.
    """
    match = get_match(bracket, round_index, match_index)

    if match.is_bye:
        raise InvalidMatchResultError(f"Match {round_index}:{match_index} is a bye")
    if match.completed:
        raise InvalidMatchResultError(f"Match {round_index}:{match_index} is already decided")
    if not match.is_ready:
        raise InvalidMatchResultError(
            f"Match {round_index}:{match_index} is still waiting on an earlier result"
        )
    if not match.has_player(winner_address):
        raise InvalidMatchResultError(
            f"{winner_address} is not playing in match {round_index}:{match_index}"
        )

    if match.player1.address == winner_address:
        winner, loser = match.player1, match.player2
    else:
        winner, loser = match.player2, match.player1

    match.winner = winner
    match.completed = True
    _advance(bracket, match, winner)
    return match, loser


def get_match(bracket: list[list[Match]], round_index: int, match_index: int) -> Match:
    if not 0 <= round_index < len(bracket):
        raise InvalidMatchResultError(f"No round {round_index} in bracket")
    round_ = bracket[round_index]
    if not 0 <= match_index < len(round_):
        raise InvalidMatchResultError(f"No match {match_index} in round {round_index}")
    return round_[match_index]


def is_final_match(bracket: list[list[Match]], match: Match) -> bool:
    return match.round_index == len(bracket) - 1


def bracket_champion(bracket: list[list[Match]] | None) -> Player | None:
    """Winner of the final match, if it has been decided."""
    if not bracket:
        return None
    final = bracket[-1][0]
    return final.winner if final.completed else None


def _complete_bye(bracket: list[list[Match]], match: Match) -> None:
    match.winner = match.player1
    match.completed = True
    _advance(bracket, match, match.player1)


def _advance(bracket: list[list[Match]], match: Match, winner: Player) -> None:
    next_round = match.round_index + 1
    if next_round >= len(bracket):
        return

    target = bracket[next_round][match.match_index // 2]
    if match.match_index % 2 == 0:
        target.player1 = winner
    else:
        target.player2 = winner

    # A bye in a later round resolves as soon as its only player arrives
    if target.is_bye and target.player1 is not None and not target.completed:
        _complete_bye(bracket, target)
