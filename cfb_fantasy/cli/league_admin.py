"""
CLI commands the external scheduler and the commissioner run.

The league never schedules itself. A cron-style scheduler calls these
commands on a fixed cadence:

Scheduler Cadence:
1. init-season CONFIG        once, before the draft (resumable)
2. sync-games                daily, to keep the schedule current
3. poll-games                every few minutes on game days
4. refresh-rankings          weekly, after the poll is released
5. reconcile                 nightly eligibility self-heal
6. standings --publish       after each polling pass

Commissioner Commands:
- add-drop, double-pick, set-heisman, set-cfp-top12, reset-draft

Every command exits with code 1 on failure so the scheduler can alert.
"""

import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config.settings import settings
from ..league.services import build_infrastructure, build_initializer, build_league
from ..season import SeasonPeriod, utcnow

app = typer.Typer(help="Season setup, ingestion, scoring and maintenance commands")
console = Console()

logger = logging.getLogger(__name__)


def setup_logging():
    """
    Configure logging for scheduled operations.

    Sets up dual logging output:
    - File logging for the permanent record the commissioner reviews
    - Console logging for the scheduler's captured output
    """
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def _parse_date(value: str | None, option: str) -> date:
    if value is None:
        return utcnow().date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise typer.BadParameter(f"{option} must be YYYY-MM-DD, got '{value}'") from e


# ========== SEASON SETUP ==========


@app.command()
def init_season(
    config_file: Path | None = typer.Argument(
        None, help="League configuration JSON (omit to resume with the stored configuration)"
    ),
):
    """
    Run the four-phase season initialization.

    Completed phases are skipped, so re-running after a failure resumes at
    the phase that failed.

    Examples:
        cfb-league league init-season league.json
        cfb-league league init-season
    """
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        initializer = build_initializer(infra)
        statuses = initializer.run(config_file)
        for phase, status in statuses.items():
            console.print(f"   {phase}: {status.value}")
        console.print("✅ Season initialized", style="green")
    except Exception as e:
        console.print(f"❌ Season initialization failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


@app.command()
def reset_draft(
    yes: bool = typer.Option(False, "--yes", help="Confirm wiping all picks and rosters"),
):
    """Wipe every pick, roster slot and eligibility counter - DESTRUCTIVE."""
    setup_logging()
    if not yes:
        console.print("Refusing to reset the draft without --yes", style="yellow")
        raise typer.Exit(1)
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        league.draft.reset_draft()
        console.print("✅ Draft reset", style="green")
    except Exception as e:
        console.print(f"❌ Draft reset failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


# ========== INGESTION ==========


@app.command()
def sync_games(
    start: str | None = typer.Option(None, "--start", help="First date, YYYY-MM-DD (default today)"),
    end: str | None = typer.Option(None, "--end", help="Last date, YYYY-MM-DD (default start)"),
    season: bool = typer.Option(False, "--season", help="Sync every calendar period instead"),
):
    """Fetch games for a date range (or the whole season) into the game store."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        build_league(infra)
        if season:
            summary = infra.pipeline.sync_season()
        else:
            first = _parse_date(start, "--start")
            last = _parse_date(end, "--end") if end else first
            summary = infra.pipeline.sync_games(first, last)
        console.print(
            f"✅ Games synced: {summary.inserted} new, {summary.updated} updated, "
            f"{len(summary.newly_completed)} newly completed",
            style="green",
        )
    except Exception as e:
        console.print(f"❌ Game sync failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


@app.command()
def poll_games(
    publish: bool = typer.Option(True, help="Publish standings when a game completes"),
):
    """Refresh every in-progress game and publish standings on completions."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        summary = infra.pipeline.poll_updates()
        console.print(
            f"✅ Polled games: {summary.updated} updated, "
            f"{len(summary.newly_completed)} newly completed"
        )
        if publish and summary.newly_completed:
            league.scoring.publish_standings()
            console.print("📊 Standings published")
    except Exception as e:
        console.print(f"❌ Game polling failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


@app.command()
def refresh_rankings(
    poll: str | None = typer.Option(None, help="Poll name (default: committee ranking, then AP)"),
):
    """Store the latest poll snapshot for the current period."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        build_league(infra)
        entries = infra.pipeline.refresh_rankings(poll)
        if entries:
            console.print(f"✅ Stored {len(entries)} ranked schools from {entries[0].poll_name}")
        else:
            console.print("😞 No rankings available from the score feed", style="yellow")
    except Exception as e:
        console.print(f"❌ Rankings refresh failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


# ========== MAINTENANCE ==========


@app.command()
def reconcile():
    """Reset eligibility counters to what the current rosters actually hold."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        corrections = league.scoring.reconcile_eligibility()
        if not corrections:
            console.print("✅ Eligibility counters match rosters", style="green")
            return
        console.print(f"🔧 Corrected {len(corrections)} counters:")
        for school, (old, new) in sorted(corrections.items()):
            console.print(f"   {school}: {old} -> {new}")
    except Exception as e:
        console.print(f"❌ Reconciliation failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


# ========== COMMISSIONER ==========


@app.command()
def add_drop(
    team: str = typer.Argument(..., help="Team name"),
    drop: str = typer.Argument(..., help="School to drop"),
    add: str = typer.Argument(..., help="School to add"),
    actor: str = typer.Option(..., "--actor", help="Email of the owner or admin making the move"),
):
    """Submit an add/drop on behalf of a team."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        result = league.transactions.submit(team, drop, add, actor)
    except Exception as e:
        console.print(f"❌ Transaction failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()

    if not result.ok:
        console.print(f"❌ Rejected: {result.reason}", style="red")
        raise typer.Exit(1)
    console.print(
        f"✅ {team}: dropped {drop}, added {add} from {SeasonPeriod(result.period).label}",
        style="green",
    )


@app.command()
def double_pick(
    team: str = typer.Argument(..., help="Team name"),
    period: int = typer.Argument(..., help="Season period (0-20)"),
    school: str = typer.Argument(..., help="Rostered school whose game points count twice"),
    actor: str = typer.Option(..., "--actor", help="Email of the owner or admin making the pick"),
):
    """Set a team's double-points school for one period."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        pick = league.double_points.set_pick(team, period, school, actor)
        console.print(f"✅ {pick.team_name}: {pick.school_name} doubled for {pick.period.label}", style="green")
    except Exception as e:
        console.print(f"❌ Double pick failed: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


@app.command()
def set_heisman(
    school: str | None = typer.Argument(None, help="Heisman-winning school (omit to clear)"),
):
    """Record the Heisman winner's school."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        league.scoring.set_heisman_winner(school)
        console.print(f"✅ Heisman winner: {league.scoring.heisman_winner() or 'none'}")
    except Exception as e:
        console.print(f"❌ Could not record Heisman winner: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


@app.command()
def set_cfp_top12(
    schools: list[str] = typer.Argument(..., help="Schools in seed order, best first"),
):
    """Record the CFP Top 12 used for bowl and playoff bonuses."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        seeds = league.scoring.set_cfp_top12(schools)
        for school, seed in seeds.items():
            console.print(f"   {seed:>2}. {school}")
    except Exception as e:
        console.print(f"❌ Could not record CFP Top 12: {e}", style="red")
        raise typer.Exit(1) from e
    finally:
        infra.close()


# ========== STANDINGS ==========


@app.command()
def standings(
    publish: bool = typer.Option(False, help="Also store the snapshot for other readers"),
    output_format: str = typer.Option("table", "--format", help="Output format (table, json)"),
):
    """Show the leaderboard with prize money."""
    setup_logging()
    infra = build_infrastructure(settings)
    try:
        league = build_league(infra)
        rows = league.scoring.publish_standings() if publish else league.scoring.standings()
        if output_format == "json":
            console.print(json.dumps([row.to_dict() for row in rows], indent=2))
        else:
            _display_standings_table(rows, league.config.league_name)
    except Exception as e:
        console.print(f"❌ Error building standings: {e}", style="red")
        logger.exception("Failed to build standings")
        raise typer.Exit(1) from e
    finally:
        infra.close()


def _display_standings_table(rows: list, league_name: str) -> None:
    """Display standings in rich table format."""
    table = Table(title=f"🏈 {league_name} Standings")

    table.add_column("Rank", justify="right", style="cyan")
    table.add_column("Team", style="magenta")
    table.add_column("Total", justify="right", style="bright_green")
    table.add_column("Bowls", justify="right")
    table.add_column("Playoff", justify="right")
    table.add_column("Natty", justify="right")
    table.add_column("Prize", justify="right", style="green")
    table.add_column("High Pts", justify="right", style="green")

    for row in rows:
        table.add_row(
            str(row.rank),
            row.team_name,
            str(row.season_total),
            str(row.period_totals.get(SeasonPeriod.BOWLS, 0)),
            str(row.period_totals.get(SeasonPeriod.PLAYOFF, 0)),
            str(row.period_totals.get(SeasonPeriod.NATIONAL_CHAMPIONSHIP, 0)),
            f"${row.prize_amount:.2f}",
            f"${row.high_points_amount:.2f}",
        )

    console.print(table)
