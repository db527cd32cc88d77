#!/usr/bin/env python
"""
ATLAS Status Dashboard CLI

Command-line interface for rendering the status page and checking that the
configured CSV series load.

Usage:
    atlas-status render --config configs/dashboard.yaml      # Write index.html
    atlas-status check --config configs/dashboard.yaml       # Verify CSV series
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from atlas_status.config.dashboard_config import DashboardConfig
from atlas_status.errors import AtlasStatusError
from atlas_status.reporting.status_page import StatusSnapshot, build_chart_group, build_status_page
from atlas_status.visualization.atlas_theme import THEMES

logger = logging.getLogger(__name__)


def cmd_render(
    config: DashboardConfig,
    status_file: Optional[str] = None,
    output_dir: Optional[str] = None,
    theme: str = 'light'
) -> int:
    """Render the status page."""
    snapshot = StatusSnapshot.from_file(status_file) if status_file else None
    if output_dir:
        config.output_dir = output_dir

    page = build_status_page(config, snapshot=snapshot, theme=theme)
    output_path = page.save()

    errors = page.errors()
    print(f"✓ Status page saved to: {output_path.absolute()}")
    for error in errors:
        print(f"  ! {error['chart']}: {error['reason']} ({error['source']})")
    return 0


def cmd_check(config: DashboardConfig) -> int:
    """Load every configured series and report what was found."""
    group = build_chart_group(config)

    print(f"\nChecking {len(group)} chart series:\n")
    print("=" * 80)
    failed = 0
    for chart in group:
        print(f"Chart: {chart.name} ({chart.config.title})")
        print(f"  Source:   {chart.config.series_url}")
        print(f"  State:    {chart.state.value}")
        if chart.is_ready:
            extent = chart.series.full_extent()
            print(f"  Points:   {chart.point_count}")
            print(f"  Period:   {extent.start} to {extent.end}")
            start, end = chart.visible_window.as_tuple()
            try:
                in_window = len(chart.series.filter_period(start, end))
            except ValueError:
                in_window = 0
            print(f"  Window:   {start} to {end} ({in_window} points)")
            for label, stats in chart.series.get_statistics().items():
                if stats['count'] == 0:
                    print(f"  {label:20s} no values")
                    continue
                print(
                    f"  {label:20s} min {chart.format_value(round(stats['min'], 2))}, "
                    f"max {chart.format_value(round(stats['max'], 2))}, "
                    f"{stats['count']} values"
                )
        else:
            failed += 1
            print(f"  Error:    {chart.error.reason}")
        print("-" * 80)

    if failed:
        print(f"✗ {failed} series failed to load")
        return 1
    print("✓ All series loaded")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='atlas-status',
        description="ATLAS Status Dashboard CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Render the page into the configured output directory
  atlas-status render --config configs/dashboard.yaml

  # Render with a status file and the dark theme
  atlas-status render --config configs/dashboard.yaml --status status.json --theme dark

  # Check that all series load
  atlas-status check --config configs/dashboard.yaml
        """
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Render command
    parser_render = subparsers.add_parser('render', help='Render the status page')
    parser_render.add_argument('--config', required=True, help='Dashboard YAML configuration')
    parser_render.add_argument('--status', help='JSON/YAML status file (default: from config)')
    parser_render.add_argument('-o', '--output', help='Output directory (default: from config)')
    parser_render.add_argument(
        '--theme',
        choices=sorted(THEMES),
        default='light',
        help='Chart theme (default: light)'
    )

    # Check command
    parser_check = subparsers.add_parser('check', help='Check that all series load')
    parser_check.add_argument('--config', required=True, help='Dashboard YAML configuration')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        return 0

    try:
        config = DashboardConfig.from_yaml(Path(args.config))
        if args.command == 'render':
            return cmd_render(config, status_file=args.status, output_dir=args.output, theme=args.theme)
        elif args.command == 'check':
            return cmd_check(config)
        else:
            parser.print_help()
            return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (AtlasStatusError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
