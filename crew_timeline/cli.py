"""
Command-line interface for crew timelines.
Provides commands for rendering a crew's day, resolving drops and listing free windows.
"""

import asyncio
import logging

import click

from .models import PlacementOutcome, is_travel_block
from .service import CrewTimelineService
from .store import FileAssignmentStore
from .util.time_utils import format_offset, parse_clock


logger = logging.getLogger(__name__)


@click.group()
@click.option('--config', default='config/params.yaml', help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def main(ctx, config: str, verbose: bool):
    """Crew timeline CLI."""
    # Setup logging
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Store config path in context
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config


def _load(input_file: str, crew: str, date: str):
    store = FileAssignmentStore(input_file)
    try:
        assignments = store.list_assignments(crew_id=crew, date=date)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))
    for error in store.errors:
        click.echo(f"  skipped: {error}", err=True)
    return assignments


def _clock(service: CrewTimelineService, minutes: int) -> str:
    return format_offset(minutes, service.config.workday.start)


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.option('--crew', required=True, help='Crew ID')
@click.option('--date', required=True, help='Day to render (YYYY-MM-DD)')
@click.pass_context
def timeline(ctx, input_file: str, crew: str, date: str):
    """Show a crew's day with travel blocks."""

    async def _timeline():
        service = CrewTimelineService(ctx.obj['config_path'])

        try:
            assignments = _load(input_file, crew, date)
            if not assignments:
                click.echo(f"No assignments for crew {crew} on {date}.")
                return

            await service.prepare(assignments)
            items = service.timeline_for(assignments, crew, date)

            click.echo(f"Timeline for crew {crew} on {date}:")
            click.echo("=" * 40)
            for item in items:
                span = f"{_clock(service, item.start_minutes)}-{_clock(service, item.end_minutes)}"
                if is_travel_block(item):
                    click.echo(f"  {span}  ~ {item.tooltip()}")
                else:
                    click.echo(f"  {span}  Job {item.id}")

            total = sum(item.duration_minutes for item in items if is_travel_block(item))
            click.echo(f"\nTotal travel: {total} min")

        except Exception as e:
            logger.error(f"Timeline failed: {e}")
            raise click.ClickException(str(e))
        finally:
            await service.close()

    asyncio.run(_timeline())


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.option('--crew', required=True, help='Crew ID')
@click.option('--date', required=True, help='Day to place on (YYYY-MM-DD)')
@click.option('--start', 'start', required=True, help='Desired start time (HH:MM)')
@click.option('--duration', required=True, type=click.IntRange(min=0), help='Job duration in minutes')
@click.option('--exclude', default=None, help='Assignment being moved (ignored as an obstacle)')
@click.pass_context
def place(ctx, input_file: str, crew: str, date: str, start: str, duration: int, exclude: str):
    """Resolve a drag/drop onto a crew's day."""

    async def _place():
        service = CrewTimelineService(ctx.obj['config_path'])

        try:
            assignments = _load(input_file, crew, date)
            await service.prepare(assignments)

            desired = parse_clock(start, service.config.workday.start)
            result = service.place(assignments, crew, date, desired, duration, exclude)

            if result.outcome == PlacementOutcome.REJECTED:
                click.echo(f"Rejected: {result.snap_reason.value} (would end after {_clock(service, service.workday_end_minutes)})")
            elif result.snapped:
                click.echo(
                    f"Placed at {_clock(service, result.start_minutes)} "
                    f"(snapped +{result.snap_delta} min past {result.snap_reason.value})"
                )
            else:
                click.echo(f"Placed at {_clock(service, result.start_minutes)}")

        except ValueError as e:
            raise click.ClickException(str(e))
        finally:
            await service.close()

    asyncio.run(_place())


@main.command()
@click.argument('input_file', type=click.Path(exists=True))
@click.option('--crew', required=True, help='Crew ID')
@click.option('--date', required=True, help='Day to search (YYYY-MM-DD)')
@click.option('--duration', required=True, type=click.IntRange(min=0), help='Job duration in minutes')
@click.option('--exclude', default=None, help='Assignment being moved (ignored as an obstacle)')
@click.pass_context
def windows(ctx, input_file: str, crew: str, date: str, duration: int, exclude: str):
    """List where a job of the given duration fits."""

    async def _windows():
        service = CrewTimelineService(ctx.obj['config_path'])

        try:
            assignments = _load(input_file, crew, date)
            await service.prepare(assignments)
            found = service.windows_for(assignments, crew, date, duration, exclude)

            if not found:
                click.echo("No placement windows.")
                return
            click.echo(f"Placement windows for {duration} min on crew {crew}, {date}:")
            for window in found:
                click.echo(f"  {_clock(service, window.start_minutes)}-{_clock(service, window.end_minutes)}")
        finally:
            await service.close()

    asyncio.run(_windows())


if __name__ == '__main__':
    main()
