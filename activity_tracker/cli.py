"""Command-line interface for the activity tracker."""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='tracker',
        description='Sport Activity Tracker - statistics, training zones, personal records and trends',
        epilog='For more information on a specific command, run: tracker <command> --help'
    )
    parser.add_argument(
        '--db',
        help='Path to the SQLite database (or set TRACKER_DB_PATH env var)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='<command>'
    )

    # Import command
    import_parser = subparsers.add_parser(
        'import',
        help='Import activities from JSON files',
        description='Store normalized activities and detect the personal records they set'
    )
    import_parser.add_argument(
        'files',
        nargs='+',
        help='JSON files holding one activity or a list of activities'
    )

    # List command
    list_parser = subparsers.add_parser(
        'list',
        help='List stored activities'
    )
    list_parser.add_argument('--sport', help='Only this sport')
    list_parser.add_argument('--from', dest='start_date', help='Start date (YYYY-MM-DD)')
    list_parser.add_argument('--to', dest='end_date', help='End date (YYYY-MM-DD)')
    list_parser.add_argument('--limit', type=int, help='Maximum number of activities')
    list_parser.add_argument('--min-km', type=float, help='Minimum distance in km')
    list_parser.add_argument('--max-km', type=float, help='Maximum distance in km')
    list_parser.add_argument('--search', help='Text to look for in sport and notes')

    # Stats command
    stats_parser = subparsers.add_parser(
        'stats',
        help='Show statistics of one activity, or of the whole database'
    )
    stats_parser.add_argument('activity_id', nargs='?', help='Activity id')

    # Delete command
    delete_parser = subparsers.add_parser(
        'delete',
        help='Delete an activity and the records it set'
    )
    delete_parser.add_argument('activity_id', help='Activity id')

    # Zones command
    zones_parser = subparsers.add_parser(
        'zones',
        help='Configure and apply heart rate training zones'
    )
    zones_sub = zones_parser.add_subparsers(dest='zones_command', metavar='<action>')
    zones_sub.add_parser('show', help='Show the current zones')
    configure_parser = zones_sub.add_parser('configure', help='Configure zones by age or Karvonen')
    configure_parser.add_argument('--age', type=int, help='Age in years (220 - age formula)')
    configure_parser.add_argument('--max-hr', type=int, help='Maximum heart rate')
    configure_parser.add_argument('--resting-hr', type=int, help='Resting heart rate (Karvonen)')
    analyze_parser = zones_sub.add_parser('analyze', help='Zone analysis of an activity')
    analyze_parser.add_argument('activity_id', nargs='?', help='Activity id (all activities if omitted)')
    analyze_parser.add_argument('--target-zone', type=int, choices=range(1, 6), help='Zone the session aimed for')
    zones_sub.add_parser('reset', help='Reset zones to defaults')

    # Records command
    records_parser = subparsers.add_parser(
        'records',
        help='Personal records'
    )
    records_sub = records_parser.add_subparsers(dest='records_command', metavar='<action>')
    records_list = records_sub.add_parser('list', help='Full record history')
    records_list.add_argument('--sport', help='Only this sport')
    records_list.add_argument('--type', dest='record_type', help='Only this record type')
    records_list.add_argument('--category', help='Only this category')
    records_current = records_sub.add_parser('current', help='Current best per type and category')
    records_current.add_argument('--sport', help='Only this sport')
    records_sub.add_parser('recalculate', help='Rebuild records from all activities')
    records_export = records_sub.add_parser('export', help='Export records to JSON')
    records_export.add_argument('--output', help='Output file (stdout if omitted)')
    records_import = records_sub.add_parser('import', help='Import records from JSON')
    records_import.add_argument('file', help='JSON file')

    # Period command
    period_parser = subparsers.add_parser(
        'period',
        help='Period statistics, comparisons and evolution'
    )
    period_sub = period_parser.add_subparsers(dest='period_command', metavar='<action>')
    for name, help_text in (
        ('stats', 'Statistics of the period containing a date'),
        ('compare', 'Compare a period with the previous one'),
        ('evolution', 'Evolution of a metric over trailing periods'),
    ):
        sub = period_sub.add_parser(name, help=help_text)
        sub.add_argument(
            '--period',
            choices=['week', 'month', 'year', 'all'] if name == 'stats' else ['week', 'month', 'year'],
            default='week',
            help='Period granularity (default: week)'
        )
        sub.add_argument('--date', help='Reference date (YYYY-MM-DD, default: today)')
        if name == 'evolution':
            sub.add_argument(
                '--metric',
                choices=['distance', 'time', 'speed', 'heartRate', 'activities'],
                default='distance',
                help='Metric to follow (default: distance)'
            )
            sub.add_argument('--count', type=int, help='Number of periods (default: 12)')

    # Report command
    report_parser = subparsers.add_parser(
        'report',
        help='Generate reports',
        description='Export activities, summaries and records'
    )
    report_parser.add_argument(
        '--format',
        choices=['excel', 'csv', 'text'],
        default='text',
        help='Report format (default: text)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file (excel) or directory (csv)'
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    _configure_logging(args.verbose)

    if args.command == 'import':
        run_import(args)
    elif args.command == 'list':
        run_list(args)
    elif args.command == 'stats':
        run_stats(args)
    elif args.command == 'delete':
        run_delete(args)
    elif args.command == 'zones':
        run_zones(args, zones_parser)
    elif args.command == 'records':
        run_records(args, records_parser)
    elif args.command == 'period':
        run_period(args, period_parser)
    elif args.command == 'report':
        run_report(args)


def _configure_logging(verbose: bool):
    from activity_tracker.config import LOG_FORMAT, LOG_LEVEL

    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format=LOG_FORMAT,
    )


def _database(args):
    from activity_tracker.storage.database.manager import DatabaseManager

    return DatabaseManager(args.db)


def _parse_date(value):
    if value is None:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        print(f"Error: Invalid date '{value}', expected YYYY-MM-DD")
        sys.exit(1)


def _require_activity(db, activity_id):
    activity = db.get_activity(activity_id)
    if activity is None:
        print(f"Error: No activity found with id '{activity_id}'")
        sys.exit(1)
    return activity


def run_import(args):
    """Store activities and report new personal records."""
    from pydantic import ValidationError

    from activity_tracker.models.activity import Activity, as_naive_utc
    from activity_tracker.services.records_service import PersonalRecordsService

    db = _database(args)
    records_service = PersonalRecordsService(db)

    activities = []
    for file_name in args.files:
        path = Path(file_name)
        if not path.exists():
            print(f"Error: File not found: {path}")
            sys.exit(1)

        try:
            payload = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            print(f"Error: {path} is not valid JSON: {e}")
            sys.exit(1)

        items = payload if isinstance(payload, list) else [payload]
        try:
            activities.extend(Activity.model_validate(item) for item in items)
        except ValidationError as e:
            print(f"Error: Invalid activity in {path}:\n{e}")
            sys.exit(1)

    # Chronological order keeps record history consistent
    for activity in sorted(activities, key=lambda a: as_naive_utc(a.start_time)):
        db.save_activity(activity)
        new_records = records_service.detect_and_save_records(activity)
        print(f"Imported {activity.id} ({activity.sport}, {activity.start_time:%Y-%m-%d})")
        for record in new_records:
            print(f"  New record: {record.type.value}/{record.category.value} = {record.value:.2f} {record.unit}")

    print(f"\n{len(activities)} activities imported")


def run_list(args):
    """List activities, most recent first."""
    from activity_tracker.formatting import format_distance, format_duration
    from activity_tracker.models.activity import ActivityFilter

    db = _database(args)
    activity_filter = ActivityFilter(
        min_distance=args.min_km * 1000 if args.min_km is not None else None,
        max_distance=args.max_km * 1000 if args.max_km is not None else None,
        search_query=args.search,
    )
    activities = db.get_activities(
        start_date=_parse_date(args.start_date),
        end_date=_parse_date(args.end_date),
        sport=args.sport,
    )
    activities = [a for a in activities if activity_filter.matches(a)][:args.limit]

    if not activities:
        print("No activities found")
        return

    for activity in activities:
        print(
            f"{activity.start_time:%Y-%m-%d %H:%M}  {activity.id:<24} {activity.sport:<10} "
            f"{format_distance(activity.distance_meters):>10}  {format_duration(activity.total_time_seconds)}"
        )


def run_stats(args):
    """Show per-activity or database statistics."""
    db = _database(args)

    if args.activity_id:
        from activity_tracker.export.reports import activity_summary

        activity = _require_activity(db, args.activity_id)
        print(activity_summary(activity))
        return

    from activity_tracker.analytics.periods import calculate_monthly_average, calculate_weekly_average
    from activity_tracker.formatting import format_distance, format_duration

    stats = db.get_summary_stats()
    activities = db.list_activities()

    print("="*60)
    print("DATABASE SUMMARY")
    print("="*60)
    print(f"Activities: {stats['total_activities']}")
    print(f"Records: {stats['total_records']}")
    print(f"Total distance: {format_distance(stats['total_distance'])}")
    print(f"Total time: {format_duration(stats['total_time'])}")
    if stats['earliest_activity']:
        print(f"Date range: {stats['earliest_activity'][:10]} to {stats['latest_activity'][:10]}")
    for sport, count in sorted(stats['activities_by_sport'].items()):
        print(f"  {sport}: {count}")

    if activities:
        print(f"Weekly average distance: {format_distance(calculate_weekly_average(activities, 'distance'))}")
        print(f"Monthly average activities: {calculate_monthly_average(activities, 'activities'):.1f}")


def run_delete(args):
    db = _database(args)
    if not db.delete_activity(args.activity_id):
        print(f"Error: No activity found with id '{args.activity_id}'")
        sys.exit(1)
    print(f"Deleted activity {args.activity_id}")


def run_zones(args, zones_parser):
    """Show, configure, apply or reset training zones."""
    from activity_tracker.formatting import format_duration
    from activity_tracker.services.zones_service import TrainingZonesService

    db = _database(args)
    service = TrainingZonesService(db)

    if args.zones_command == 'show':
        settings = service.get_settings()
        if settings is None:
            print("Default zones (not configured)")
        else:
            print(f"Method: {settings.method.value}, max HR {settings.max_heart_rate}")
        for zone in service.get_zones():
            print(f"  Zone {zone.zone} {zone.name:<12} {zone.min_hr:>3}-{zone.max_hr:<3} bpm  {zone.description}")

    elif args.zones_command == 'configure':
        if args.resting_hr:
            if not args.max_hr:
                print("Error: --resting-hr requires --max-hr")
                sys.exit(1)
            settings = service.configure_by_karvonen(args.max_hr, args.resting_hr, args.age)
        elif args.age:
            settings = service.configure_by_age(args.age)
        else:
            print("Error: provide --age, or --max-hr with --resting-hr")
            sys.exit(1)
        print(f"Zones configured ({settings.method.value}, max HR {settings.max_heart_rate})")

    elif args.zones_command == 'analyze':
        if args.activity_id:
            analysis = service.analyze_activity(_require_activity(db, args.activity_id), args.target_zone)
            print(f"Training type: {analysis.training_type.value}")
            print(f"Dominant zone: {analysis.dominant_zone or '-'}")
            print(f"Efficiency: {analysis.efficiency}")
            if analysis.time_in_target_zone is not None:
                print(f"Time in zone {args.target_zone}: {format_duration(analysis.time_in_target_zone)}")
            p = analysis.percentages
            print(f"Zones: Z1 {p.zone1}%  Z2 {p.zone2}%  Z3 {p.zone3}%  Z4 {p.zone4}%  Z5 {p.zone5}%  ?? {p.unknown}%")
            for recommendation in analysis.recommendations:
                print(f"  - {recommendation}")
        else:
            activities = db.list_activities()
            stats = service.get_zone_statistics(activities)
            p = stats.average_percentages
            print(f"Zones: Z1 {p.zone1}%  Z2 {p.zone2}%  Z3 {p.zone3}%  Z4 {p.zone4}%  Z5 {p.zone5}%  ?? {p.unknown}%")
            print(f"Average efficiency: {stats.average_efficiency:.0f}")
            for training_type, count in stats.training_type_distribution.items():
                if count:
                    print(f"  {training_type.value}: {count}")
            for recommendation in service.get_training_recommendations(activities):
                print(f"  - {recommendation}")

    elif args.zones_command == 'reset':
        service.reset_to_defaults()
        print("Zones reset to defaults")

    else:
        zones_parser.print_help()
        sys.exit(1)


def _print_records(records):
    if not records:
        print("No records")
    for record in records:
        new = " (new)" if record.is_new else ""
        print(
            f"{record.activity_date:%Y-%m-%d}  {record.sport:<10} {record.type.value:<10} "
            f"{record.category.value:<13} {record.value:>10.2f} {record.unit}{new}"
        )


def run_records(args, records_parser):
    """Query, rebuild, export or import personal records."""
    from activity_tracker.services.records_service import PersonalRecordsService

    db = _database(args)
    service = PersonalRecordsService(db)

    if args.records_command == 'list':
        records = service.get_all_records()
        if args.sport:
            records = [r for r in records if r.sport == args.sport]
        if args.record_type:
            records = [r for r in records if r.type.value == args.record_type]
        if args.category:
            records = [r for r in records if r.category.value == args.category]
        _print_records(records)

    elif args.records_command == 'current':
        _print_records(service.get_current_records(args.sport))

    elif args.records_command == 'recalculate':
        created = service.recalculate_all_records(db.list_activities())
        print(f"Recalculated {created} records")

    elif args.records_command == 'export':
        data = service.export_records()
        if args.output:
            Path(args.output).parent.mkdir(parents=True, exist_ok=True)
            Path(args.output).write_text(data)
            print(f"Records exported to {args.output}")
        else:
            print(data)

    elif args.records_command == 'import':
        path = Path(args.file)
        if not path.exists():
            print(f"Error: File not found: {path}")
            sys.exit(1)
        try:
            imported = service.import_records(path.read_text())
        except ValueError as e:
            print(f"Error: Invalid records file: {e}")
            sys.exit(1)
        print(f"Imported {imported} records")

    else:
        records_parser.print_help()
        sys.exit(1)


def run_period(args, period_parser):
    """Period statistics, comparison and evolution."""
    from activity_tracker.analytics import trends
    from activity_tracker.formatting import format_distance, format_duration, format_speed

    if args.period_command is None:
        period_parser.print_help()
        sys.exit(1)

    db = _database(args)
    activities = db.list_activities()
    date = _parse_date(args.date) or datetime.now()

    if args.period_command == 'stats':
        stats = trends.calculate_period_stats(activities, args.period, date)
        print(f"{stats.date_range.start:%Y-%m-%d} to {stats.date_range.end:%Y-%m-%d}")
        print(f"Activities: {stats.total_activities}")
        print(f"Distance: {format_distance(stats.total_distance)}")
        print(f"Time: {format_duration(stats.total_time)}")
        print(f"Average speed: {format_speed(stats.average_speed)}")
        print(f"Elevation gain: {stats.total_elevation_gain:.0f} m")
        print(f"Calories: {stats.total_calories} kcal")
        if stats.average_heart_rate is not None:
            print(f"Average HR: {stats.average_heart_rate:.0f} bpm")
        for sport, totals in stats.sport_breakdown.items():
            print(f"  {sport}: {totals.count} activities, {format_distance(totals.distance)}")

    elif args.period_command == 'compare':
        comparison = trends.compare_periods(activities, args.period, date)
        changes = comparison.changes
        print(f"Current:  {comparison.current.total_activities} activities, "
              f"{format_distance(comparison.current.total_distance)}")
        print(f"Previous: {comparison.previous.total_activities} activities, "
              f"{format_distance(comparison.previous.total_distance)}")
        print(f"Distance {changes.distance:+.1f}%  Time {changes.time:+.1f}%  "
              f"Activities {changes.activities:+.1f}%  Speed {changes.speed:+.1f}%")

    elif args.period_command == 'evolution':
        from activity_tracker.config import EVOLUTION_PERIODS

        count = args.count or EVOLUTION_PERIODS
        evolution = trends.get_evolution_data(activities, args.metric, args.period, count, date)
        for point in evolution.data:
            print(f"{point.label:>6}  {point.value:10.2f} {evolution.unit}")
        print(f"Trend: {evolution.trend.value} ({evolution.trend_percentage:.1f}%)")


def run_report(args):
    """Generate a text, CSV or Excel report."""
    from activity_tracker.export.reports import ReportExporter

    db = _database(args)
    exporter = ReportExporter(db.list_activities(), db.list_records())

    if args.format == 'excel':
        path = exporter.export_to_excel(args.output)
        print(f"Excel report: {path}")
    elif args.format == 'csv':
        files = exporter.export_to_csv(args.output)
        for name, path in files.items():
            print(f"{name}: {path}")
    else:
        report = exporter.generate_summary_report()
        if args.output:
            Path(args.output).write_text(report)
            print(f"Report written to {args.output}")
        else:
            print(report)


if __name__ == "__main__":
    main()
