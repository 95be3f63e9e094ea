"""
Command line interface for the court scheduling engine.
"""

import argparse
import json
from datetime import timedelta
from pathlib import Path
from typing import Any

from tabulate import tabulate

from courtsched.config.error_aggregator import init_error_aggregator
from courtsched.config.logging import setup_logging
from courtsched.config.logging_config import load_logging_config
from courtsched.config.settings import ConfigurationManager
from courtsched.config.utils import resolve_path
from courtsched.exceptions import SchedulingError
from courtsched.services.calendar_export import CourtCalendarBuilder
from courtsched.services.scheduling_service import SchedulingService, parse_date
from courtsched.utils.cli_utils import (
    ArgumentValidator,
    CLIBuilder,
    CLIContext,
    CLIOptionFactory,
    CommandCategory,
    CommandRegistry,
)
from courtsched.utils.logging_utils import get_logger


def _service(ctx: CLIContext) -> SchedulingService:
    return SchedulingService.from_config(ctx.config)

def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


class ListCommands:
    """List command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='courts',
        help_text='List configured courts and their policies',
        category=CommandCategory.LIST,
        options=[CLIOptionFactory.create_format_option()]
    )
    def list_courts(ctx: CLIContext) -> int:
        """List configured courts."""
        store = _service(ctx).store
        courts = store.list_courts()

        if ctx.args.format == 'json':
            _print_json([
                {
                    'id': court.id,
                    'name': court.name,
                    'timezone': court.timezone,
                    'is_active': court.is_active,
                    'hourly_rate': str(court.policy.hourly_rate),
                    'min_booking_minutes': court.policy.min_booking_minutes,
                    'max_booking_minutes': court.policy.max_booking_minutes,
                    'max_advance_booking_days': court.policy.max_advance_booking_days,
                }
                for court in courts
            ])
            return 0

        if not courts:
            print("No courts configured")
            return 0

        rows = [
            [
                court.id,
                court.name,
                court.timezone,
                court.policy.hourly_rate,
                f"{court.policy.min_booking_minutes}-{court.policy.max_booking_minutes} min",
                court.policy.max_advance_booking_days,
                'yes' if court.is_active else 'no',
            ]
            for court in courts
        ]
        print(tabulate(rows, headers=['ID', 'Name', 'Timezone', 'Rate', 'Duration', 'Advance days', 'Active']))
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='reservations',
        help_text='List reservations of a court on a date',
        category=CommandCategory.LIST,
        options=[
            CLIOptionFactory.create_court_option(),
            CLIOptionFactory.create_date_option(),
            CLIOptionFactory.create_format_option()
        ]
    )
    def list_reservations(ctx: CLIContext) -> int:
        """List reservations of a court on a date."""
        reservations = _service(ctx).get_court_reservations(ctx.args.court, ctx.args.date)

        if ctx.args.format == 'json':
            _print_json([reservation.to_dict() for reservation in reservations])
            return 0

        if not reservations:
            print("No reservations found")
            return 0

        rows = [
            [r.id, r.interval.start_label, r.interval.end_label, r.status.value, r.total_amount]
            for r in reservations
        ]
        print(tabulate(rows, headers=['ID', 'Start', 'End', 'Status', 'Amount']))
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='slots',
        help_text='List free slots of a court on a date',
        category=CommandCategory.LIST,
        options=[
            CLIOptionFactory.create_court_option(),
            CLIOptionFactory.create_date_option(),
            {
                'name': '--step',
                'type': int,
                'help': 'Slot step in minutes (default: court granularity)',
                'validator': lambda x: x > 0
            },
            CLIOptionFactory.create_format_option()
        ]
    )
    def list_slots(ctx: CLIContext) -> int:
        """List free slots."""
        result = _service(ctx).get_available_slots(ctx.args.court, ctx.args.date, ctx.args.step)

        if ctx.args.format == 'json':
            _print_json({
                'court_id': result.court_id,
                'date': result.date.isoformat(),
                'reason': result.reason.value if result.reason else None,
                'slots': [slot.to_dict() for slot in result],
            })
            return 0

        if not result.is_available:
            print(f"No slots available: {result.reason.value}")
            return 0

        rows = [
            [
                slot.interval.start_label,
                slot.interval.end_label,
                slot.duration_minutes,
                slot.price,
            ]
            for slot in result
        ]
        print(tabulate(rows, headers=['Start', 'End', 'Minutes', 'Price']))
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='calendar',
        help_text='Show availability per day over a date range',
        category=CommandCategory.LIST,
        options=[
            CLIOptionFactory.create_court_option(),
            CLIOptionFactory.create_date_option('--from-date', required=False),
            CLIOptionFactory.create_date_option('--to-date', required=False),
            CLIOptionFactory.create_format_option()
        ]
    )
    def show_calendar(ctx: CLIContext) -> int:
        """Show the availability calendar."""
        service = _service(ctx)
        today = service.clock.now().date()
        from_date = parse_date(ctx.args.from_date) if ctx.args.from_date else today
        to_date = parse_date(ctx.args.to_date) if ctx.args.to_date else from_date + timedelta(days=6)
        calendar = service.get_court_availability_calendar(ctx.args.court, from_date, to_date)

        if ctx.args.format == 'json':
            _print_json({
                day.isoformat(): {
                    'slots': len(result),
                    'reason': result.reason.value if result.reason else None,
                }
                for day, result in calendar.items()
            })
            return 0

        rows = []
        for day, result in calendar.items():
            windows = [slot.interval for slot in result]
            rows.append([
                day.isoformat(),
                day.strftime('%a'),
                len(result),
                min(windows).start_label if windows else '-',
                max(windows).start_label if windows else '-',
                result.reason.value if result.reason else '',
            ])
        print(tabulate(rows, headers=['Date', 'Day', 'Slots', 'First start', 'Last start', 'Reason']))
        return 0


class CheckCommands:
    """Point query command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='check',
        help_text='Check whether a window can be booked',
        category=CommandCategory.CHECK,
        options=[
            CLIOptionFactory.create_court_option(),
            CLIOptionFactory.create_date_option(),
            *CLIOptionFactory.create_window_options(),
            CLIOptionFactory.create_format_option()
        ]
    )
    def check_availability(ctx: CLIContext) -> int:
        """Check availability of a window."""
        check = _service(ctx).check_availability(ctx.args.court, ctx.args.date, ctx.args.start, ctx.args.end)

        if ctx.args.format == 'json':
            _print_json(check.to_dict())
            return 0

        if check.available:
            print(f"{check.court_id} {check.date.isoformat()} {check.interval}: available")
        else:
            print(f"{check.court_id} {check.date.isoformat()} {check.interval}: unavailable ({check.reason})")
            for window in check.conflicting_windows:
                print(f"  conflicts with {window}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='conflicts',
        help_text='Show what overlaps a window',
        category=CommandCategory.CHECK,
        options=[
            CLIOptionFactory.create_court_option(),
            CLIOptionFactory.create_date_option(),
            *CLIOptionFactory.create_window_options(),
            CLIOptionFactory.create_format_option()
        ]
    )
    def show_conflicts(ctx: CLIContext) -> int:
        """Show conflicts of a window."""
        details = _service(ctx).detect_conflicts(ctx.args.court, ctx.args.date, ctx.args.start, ctx.args.end)

        if ctx.args.format == 'json':
            _print_json([detail.to_dict() for detail in details])
            return 0

        if not details:
            print("No conflicts")
            return 0

        rows = [
            [
                detail.kind,
                str(detail.window),
                detail.overlap_minutes,
                detail.reservation_id or detail.block_id or detail.rule,
                detail.status or detail.reason or '',
            ]
            for detail in details
        ]
        print(tabulate(rows, headers=['Kind', 'Window', 'Overlap (min)', 'Reference', 'Status']))
        return 0


class ExportCommands:
    """Export command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='export',
        help_text='Export a court schedule as an ICS calendar',
        category=CommandCategory.EXPORT,
        options=[
            CLIOptionFactory.create_court_option(),
            CLIOptionFactory.create_date_option('--from-date'),
            CLIOptionFactory.create_date_option('--to-date'),
            {
                'name': '--output',
                'help': 'ICS file path (default: <export dir>/<court>.ics)'
            },
            {
                'name': '--include-blocks',
                'action': 'store_true',
                'help': 'Include maintenance and other schedule blocks'
            }
        ]
    )
    def export_calendar(ctx: CLIContext) -> int:
        """Write the court schedule to an ICS file."""
        service = _service(ctx)
        from_date, to_date = parse_date(ctx.args.from_date), parse_date(ctx.args.to_date)
        if from_date > to_date:
            ctx.logger.error("--from-date must not be after --to-date")
            return 1

        court = service.store.load_court(ctx.args.court)
        if court is None:
            ctx.logger.error(f"Court {ctx.args.court} not found")
            return 1

        reservations = []
        blocks = []
        day = from_date
        while day <= to_date:
            reservations.extend(service.get_court_reservations(court.id, day))
            if ctx.args.include_blocks:
                blocks.extend(service.get_court_blocks(court.id, day))
            day += timedelta(days=1)

        output = Path(ctx.args.output) if ctx.args.output else (
            resolve_path(ctx.config.global_config['directories']['export']) / f"{court.id}.ics"
        )
        builder = CourtCalendarBuilder(court)
        builder.write_calendar(builder.build_calendar(reservations, blocks), output)
        print(f"Wrote {output}")
        return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser from the registered commands."""
    builder = CLIBuilder(description='Court reservation scheduling engine')

    for command in CommandRegistry.commands():
        builder.add_command(command)

    return builder.build()

def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logger = get_logger(__name__)
    try:
        config_manager = ConfigurationManager()
        if args.config_dir:
            config = config_manager.reload_config(args.config_dir)
        else:
            config = config_manager.load_config()

        logging_config = load_logging_config()
        logging_config.default_level = config.log_level
        setup_logging(logging_config, verbose=args.verbose, log_file=args.log_file or config.log_file, aggregate_errors=False)

        # Short-lived process: report on thresholds only, no timer thread
        init_error_aggregator(logging_config.error_aggregation, start_reporter=False)

        ctx = CLIContext(args=args, logger=logger, config=config, parser=parser)

        command = CommandRegistry.get_command(args.command)
        if not command:
            logger.error(f"Unknown command: {args.command}")
            return 1

        errors = ArgumentValidator.validate_args(args, command)
        if errors:
            for error in errors:
                logger.error(error)
            return 1

        return command.handler(ctx)

    except SchedulingError as e:
        logger.error(str(e))
        return 1
    except Exception:
        logger.exception("Unhandled exception")
        return 1

if __name__ == '__main__':
    raise SystemExit(main())
