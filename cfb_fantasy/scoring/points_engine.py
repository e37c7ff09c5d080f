"""Points engine: a school's completed-game facts -> points per season period.

Pure functions only. Same games, rules and inputs always give the same table;
nothing here reads the database or the clock.

How points are earned:

Regular weeks (0-14 and 16), per completed game:
- winner: win + conference_game (conference game) + over_50 (scored > 50)
  + shutout (opponent scored 0) + a ranked-opponent bonus from the loser's
  live curated rank: 1-10 -> ranked_10, 11-25 -> ranked_25
- loser: the loss-side values, which default to 0

Conference championship week (15): conference_win to the winner and
conference_loss to the loser. No other bonus applies.

Bowls (17): bowl_appearance once for a school in a scheduled bowl, plus the
regular per-game formula for the bowl game itself. The ranked-opponent bonus
uses the league's CFP Top 12 instead of the live rank: seeds 1-10 ->
ranked_10, 11-12 -> ranked_25.

Heisman (18): heisman_winner if the school is the recorded winner.

Playoff (19): the per-game formula (Top 12 bonus as for bowls) plus an
appearance tier per completed game: playoff_first_round,
playoff_quarterfinal or playoff_semifinal. A top-4 seed skips the first
round and receives playoff_first_round + playoff_quarterfinal when it plays
its quarterfinal.

National Championship (20): championship_win / championship_loss only. The
title game is the chronologically last game whose name marks it as the
national championship, whatever period the feed filed it under.

Eligibility gating:
Outside a school's active windows a period's value is None (blank), not 0,
so "not on the roster" reads differently from "earned nothing".

Double points:
A team's weekly double pick adds the school's game-formula points for that
period once more. Event awards are never doubled; ``split_points`` keeps the
two apart.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ..config.league import ScoringRules
from ..data.games import GameResult, PostseasonRound
from ..season import ALL_PERIODS, SeasonPeriod

PointsTable = dict[SeasonPeriod, int | None]

BYE_SEEDS = 4
TOP_TIER_RANK = 10
LIVE_RANKED_LIMIT = 25
CFP_FIELD_SIZE = 12


@dataclass(frozen=True)
class ActiveWindow:
    """Inclusive span of scoring periods."""

    start: int
    end: int

    def contains(self, period: int) -> bool:
        return self.start <= int(period) <= self.end


def ranked_bonus(opponent_rank: int, rules: ScoringRules, won: bool, limit: int) -> int:
    """Bonus for the opponent's rank; ``limit`` is the lowest rank that still counts."""
    if not opponent_rank or opponent_rank > limit:
        return 0
    if opponent_rank <= TOP_TIER_RANK:
        return rules.ranked_10 if won else rules.ranked_10_loss
    return rules.ranked_25 if won else rules.ranked_25_loss


def game_points(
    school: str,
    game: GameResult,
    rules: ScoringRules,
    opponent_rank: int | None = None,
    rank_limit: int = LIVE_RANKED_LIMIT,
) -> int:
    """Per-game formula for one side of a completed, decided game.

    ``opponent_rank`` overrides the opponent's live curated rank (bowls and
    playoff games pass the CFP seed).
    """
    winner, loser = game.winner, game.loser
    if winner is None or loser is None:
        return 0

    won = winner.school_name == school
    opponent = loser if won else winner
    own_score = game.winner_score if won else game.loser_score
    opponent_score = game.loser_score if won else game.winner_score
    rank = opponent.curated_rank if opponent_rank is None else opponent_rank

    points = rules.win if won else rules.loss
    if game.is_conference_game:
        points += rules.conference_game if won else rules.conference_game_loss
    if own_score > 50:
        points += rules.over_50 if won else rules.over_50_loss
    if opponent_score == 0:
        points += rules.shutout if won else rules.shutout_loss
    points += ranked_bonus(rank, rules, won, rank_limit)
    return points


def _kickoff_key(game: GameResult) -> datetime:
    return game.start_time or game.completion_time or datetime.min


def find_title_game(games: Iterable[GameResult]) -> GameResult | None:
    """The chronologically last game named as the national championship."""
    candidates = [g for g in games if g.postseason_round is PostseasonRound.CHAMPIONSHIP]
    if not candidates:
        return None
    return max(candidates, key=lambda g: (_kickoff_key(g), g.game_id))


def split_points(
    school: str,
    games: Iterable[GameResult],
    rules: ScoringRules,
    cfp_top12: dict[str, int] | None = None,
    heisman_winner: str | None = None,
    season_period: int | None = None,
) -> tuple[dict[SeasonPeriod, int], dict[SeasonPeriod, int]]:
    """A school's points per period, kept apart by source.

    Returns:
        (game, bonus): ``game`` holds the per-game formula for regular-season,
        bowl and playoff games; ``bonus`` holds the event awards (conference
        title game, bowl appearance, playoff rounds, national championship,
        Heisman). A double-points pick multiplies only the first.
    """
    games = list(games)
    seeds = cfp_top12 or {}
    formula: dict[SeasonPeriod, int] = {period: 0 for period in ALL_PERIODS}
    bonus: dict[SeasonPeriod, int] = {period: 0 for period in ALL_PERIODS}

    title_game = find_title_game(games)
    own_games = [g for g in games if g.involves(school)]
    played_first_round = any(
        g.postseason_round is PostseasonRound.FIRST_ROUND and g.is_completed for g in own_games
    )
    in_bowl = False

    for game in own_games:
        round_ = game.postseason_round

        if title_game is not None and game.game_id == title_game.game_id:
            continue
        if round_ is PostseasonRound.CHAMPIONSHIP:
            # Named as a title game but superseded by a later one
            continue

        if round_ is None:
            period = SeasonPeriod(game.period)
            if period is SeasonPeriod.CONFERENCE_CHAMPIONSHIP:
                if game.winner is not None:
                    won = game.winner.school_name == school
                    bonus[period] += rules.conference_win if won else rules.conference_loss
            elif period.is_regular:
                formula[period] += game_points(school, game, rules)
            continue

        opponent_seed = seeds.get(game.opponent_of(school).school_name, 0)

        if round_ is PostseasonRound.BOWL:
            in_bowl = True
            formula[SeasonPeriod.BOWLS] += game_points(
                school, game, rules, opponent_seed, CFP_FIELD_SIZE
            )
            continue

        # Playoff rounds before the title game
        if not game.is_completed:
            continue
        formula[SeasonPeriod.PLAYOFF] += game_points(
            school, game, rules, opponent_seed, CFP_FIELD_SIZE
        )
        if round_ is PostseasonRound.FIRST_ROUND:
            bonus[SeasonPeriod.PLAYOFF] += rules.playoff_first_round
        elif round_ is PostseasonRound.QUARTERFINAL:
            bonus[SeasonPeriod.PLAYOFF] += rules.playoff_quarterfinal
            seed = seeds.get(school)
            had_bye = seed <= BYE_SEEDS if seed else not played_first_round
            if had_bye:
                bonus[SeasonPeriod.PLAYOFF] += rules.playoff_first_round
        elif round_ is PostseasonRound.SEMIFINAL:
            bonus[SeasonPeriod.PLAYOFF] += rules.playoff_semifinal

    bowls_reached = season_period is None or int(season_period) >= int(SeasonPeriod.BOWLS)
    if in_bowl and bowls_reached:
        bonus[SeasonPeriod.BOWLS] += rules.bowl_appearance

    if title_game is not None and title_game.involves(school) and title_game.winner is not None:
        won = title_game.winner.school_name == school
        bonus[SeasonPeriod.NATIONAL_CHAMPIONSHIP] += (
            rules.championship_win if won else rules.championship_loss
        )

    if heisman_winner and heisman_winner == school:
        bonus[SeasonPeriod.HEISMAN] += rules.heisman_winner

    return formula, bonus


def compute_points(
    school: str,
    games: Iterable[GameResult],
    rules: ScoringRules,
    active_periods: list[ActiveWindow] | None = None,
    cfp_top12: dict[str, int] | None = None,
    heisman_winner: str | None = None,
    season_period: int | None = None,
) -> PointsTable:
    """Points a school earned in every season period.

    Args:
        school: School name
        games: Season games (any schools); only games involving ``school`` count
        rules: Point values
        active_periods: Windows in which the points count; None means no gating
        cfp_top12: School -> CFP seed (1-12) for bowl and playoff bonuses
        heisman_winner: Name of the Heisman-winning school, if decided
        season_period: Current period; bowl appearance needs the Bowls period
            to have been reached. None means it has.

    Returns:
        {period: points}, with None for gated periods
    """
    formula, bonus = split_points(school, games, rules, cfp_top12, heisman_winner, season_period)
    points = {period: formula[period] + bonus[period] for period in ALL_PERIODS}
    return gate_points(points, active_periods)


def gate_points(points: dict[SeasonPeriod, int | None], windows: list[ActiveWindow] | None) -> PointsTable:
    """Blank out periods outside every window."""
    if windows is None:
        return dict(points)
    return {
        period: value if any(window.contains(period) for window in windows) else None
        for period, value in points.items()
    }


def season_total(points: PointsTable) -> int:
    return sum(value for value in points.values() if value is not None)
