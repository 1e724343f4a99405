#!/usr/bin/env python3
"""
opencode overlay: ebuild update

Usage:
    python3 update.py                 # bump to the latest GitHub release
    python3 update.py -v 0.6.0        # bump to a specific version
    python3 update.py -f              # recreate an existing ebuild
    python3 update.py --no-color      # plain output (for CI)

Copies the template ebuild to the new version, regenerates the Manifest and
commits the result. Exits non-zero on any fatal error.
"""

import argparse
import sys

from overlay.config import LogConfig, OverlayConfig
from overlay.console import Console
from overlay.ebuild_updater import EbuildUpdater, UpdateResult, next_steps
from overlay.errors import OverlayError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Update the opencode ebuild to the latest version.",
        epilog="Example: python3 update.py -v 0.6.0",
    )
    parser.add_argument(
        "-v", "--version", help="Specify version instead of auto-detecting"
    )
    parser.add_argument(
        "-f", "--force", action="store_true", help="Force update even if ebuild exists"
    )
    parser.add_argument("--skip-git", action="store_true", help="Skip git operations")
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Only check version, don't update"
    )
    return parser


def print_summary(config: OverlayConfig, result: UpdateResult):
    """Print final summary with next steps."""
    print()
    print("=" * 60)
    print(f"  Update Summary: {config.atom}")
    print("=" * 60)
    print(f"  Version     : {result.version}")
    print(f"  Ebuild      : {result.ebuild_path}")
    print(f"  Manifest    : {result.manifest_tool or 'NOT REGENERATED'}")
    print(f"  Committed   : {'yes' if result.committed else 'no'}")
    if result.warnings:
        print(f"  Warnings    : {len(result.warnings)}")
        for warning in result.warnings:
            print(f"    - {warning}")
    print()
    print("  Next steps:")
    for step in next_steps(config, result.version):
        print(f"    {step}")
    print("=" * 60)
    print()


def main(argv: list[str] | None = None, config: OverlayConfig | None = None, **kwargs) -> int:
    args = build_parser().parse_args(argv)
    console = Console(LogConfig.from_args(no_color=args.no_color))
    config = config or OverlayConfig.from_env()
    updater = EbuildUpdater(config, console=console, **kwargs)

    try:
        result = updater.update(
            version=args.version,
            force=args.force,
            skip_git=args.skip_git,
            dry_run=args.dry_run,
        )
    except OverlayError as e:
        console.error(str(e))
        return 1
    except KeyboardInterrupt:
        console.error("Interrupted")
        return 130

    if result.created:
        print_summary(config, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
