"""CLI entrypoint for the expedition engine."""

from __future__ import annotations

import asyncio

import typer
from rich import print

from expedition.batch import BatchJobStatus, BatchRuntime, ScriptResult, parse_script, run_script
from expedition.config import settings
from expedition.discovery import remaining_discoveries
from expedition.errors import ExpeditionError
from expedition.luck import build_luck_summary
from expedition.pathfinding import find_path, reachable_areas
from expedition.preview import preview_explore, preview_survey
from expedition.telemetry import configure_logging

app = typer.Typer(help="Expedition world generation and discovery engine")

_SCRIPT_HELP = "Comma separated actions: enrol, survey, explore, travel <area>, fartravel <area>, wait <ticks>"


def _replay(seed: str | None, script: str) -> ScriptResult:
    configure_logging(settings.log_level)
    try:
        steps = parse_script(script)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--script") from exc
    try:
        return run_script(seed or settings.default_seed, steps, config=settings)
    except ExpeditionError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


@app.command()
def start() -> None:
    """Show engine configuration."""
    print(
        {
            "app_name": settings.app_name,
            "default_seed": settings.default_seed,
            "session_ticks": settings.session_ticks,
            "base_travel_time": settings.base_travel_time,
            "initial_distance_bands": settings.initial_distance_bands,
        }
    )


@app.command("run")
def run(
    seed: str = typer.Option(None, help="World seed"),
    script: str = typer.Option("enrol,survey,explore", help=_SCRIPT_HELP),
) -> None:
    """Replay a script from a fresh world and print every outcome."""
    result = _replay(seed, script)
    for step_result in result.steps:
        print({"step": str(step_result.step), "tick": step_result.tick_after, "outcome": step_result.outcome})

    world = result.world
    print(
        {
            "current_area": world.player.current_area_id,
            "known_areas": world.player.known_area_ids,
            "known_connections": world.player.known_connection_ids,
            "known_locations": world.player.known_location_ids,
            "remaining_ticks": world.clock.remaining_ticks,
            "remaining_in_area": remaining_discoveries(world),
            "luck": build_luck_summary(world.roll_history),
        }
    )


@app.command("preview")
def preview(
    kind: str = typer.Argument(..., help="survey or explore"),
    seed: str = typer.Option(None, help="World seed"),
    script: str = typer.Option("enrol", help=_SCRIPT_HELP),
) -> None:
    """Predict how many ticks the next discovery would take."""
    previewers = {"survey": preview_survey, "explore": preview_explore}
    if kind not in previewers:
        raise typer.BadParameter("kind must be survey or explore", param_hint="kind")
    world = _replay(seed, script).world
    ticks = previewers[kind](world)
    print({"kind": kind, "area": world.player.current_area_id, "ticks": ticks})


@app.command("path")
def path(
    to_area: str = typer.Option(None, "--to", help="Destination area id; omit to list reachable areas"),
    from_area: str = typer.Option(None, "--from", help="Origin area id (defaults to the current area)"),
    seed: str = typer.Option(None, help="World seed"),
    script: str = typer.Option("enrol", help=_SCRIPT_HELP),
) -> None:
    """Route over known connections."""
    world = _replay(seed, script).world
    if to_area is None:
        print({"reachable": reachable_areas(world)})
        return

    origin = from_area or world.player.current_area_id
    if origin not in world.areas or to_area not in world.areas:
        print({"error": "unknown area id"})
        raise typer.Exit(code=1)
    route = find_path(world, origin, to_area)
    if route is None:
        print({"path": None})
        raise typer.Exit(code=1)
    print({"path": route.area_ids, "connections": route.connection_ids, "total_ticks": route.total_ticks})


@app.command("batch")
def batch(
    seeds: int = typer.Option(10, min=1, help="How many seeds to simulate"),
    seed_prefix: str = typer.Option("batch", help="Seeds are <prefix>-0, <prefix>-1, ..."),
    script: str = typer.Option("enrol,survey,explore,survey,explore", help=_SCRIPT_HELP),
    timeout: float = typer.Option(30.0, help="Per-seed timeout in seconds"),
) -> None:
    """Run the same script across many seeds concurrently."""
    configure_logging(settings.log_level)
    try:
        steps = parse_script(script)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--script") from exc

    runtime = BatchRuntime(steps, config=settings, job_timeout_seconds=timeout)
    jobs = asyncio.run(runtime.run_seeds([f"{seed_prefix}-{index}" for index in range(seeds)]))
    for job in jobs:
        if job.status is BatchJobStatus.SUCCEEDED and job.result is not None:
            world = job.result.world
            print(
                {
                    "seed": job.seed,
                    "known_areas": len(world.player.known_area_ids),
                    "ticks_used": world.clock.current_tick,
                    "luck": job.result.luck,
                }
            )
        else:
            print({"seed": job.seed, "status": job.status.value, "error": job.error})


if __name__ == "__main__":
    app()
