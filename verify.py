#!/usr/bin/env python3
"""
opencode overlay: ebuild verification

Usage:
    python3 verify.py                 # test the newest available ebuild
    python3 verify.py -v 0.5.29       # test a specific version
    python3 verify.py --setup-only    # only register the overlay

Must run as root: it writes repos.conf and emerges the package.
"""

import argparse
import sys

from overlay.config import LogConfig, OverlayConfig
from overlay.console import Console
from overlay.ebuild_tester import EbuildTester, VerificationReport
from overlay.errors import OverlayError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Test opencode ebuild functionality and quality.",
        epilog="Example: python3 verify.py -v 0.5.29",
    )
    parser.add_argument(
        "-v", "--version", help="Test specific version (default: newest available)"
    )
    parser.add_argument(
        "--skip-compile", action="store_true", help="Skip compilation test"
    )
    parser.add_argument(
        "--skip-qa",
        "--skip-repoman",
        dest="skip_qa",
        action="store_true",
        help="Skip QA checks (pkgcheck/repoman)",
    )
    parser.add_argument(
        "--setup-only", action="store_true", help="Only setup overlay, don't run tests"
    )
    parser.add_argument(
        "--keep-installed",
        action="store_true",
        help="Leave the package installed after the compile test",
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output"
    )
    return parser


def print_summary(config: OverlayConfig, report: VerificationReport):
    print()
    print("=" * 60)
    print(f"  Verification Summary: {report.package}-{report.version}")
    print("=" * 60)
    print(f"  Overlay     : {config.overlay_dir}")
    for stage in report.stages:
        line = f"  {stage.name:<12}: {stage.status.upper()}"
        if stage.detail:
            line += f" ({stage.detail})"
        print(line)
    if report.warnings:
        print(f"  Warnings    : {len(report.warnings)}")
        for warning in report.warnings:
            print(f"    - {warning}")
    print("=" * 60)
    print()


def main(argv: list[str] | None = None, config: OverlayConfig | None = None, **kwargs) -> int:
    args = build_parser().parse_args(argv)
    console = Console(LogConfig.from_args(no_color=args.no_color))
    config = config or OverlayConfig.from_env()
    tester = EbuildTester(config, console=console, **kwargs)

    try:
        report = tester.run(
            version=args.version,
            skip_compile=args.skip_compile,
            skip_qa=args.skip_qa,
            setup_only=args.setup_only,
            keep_installed=args.keep_installed,
        )
    except OverlayError as e:
        console.error(str(e))
        if tester.report is not None and tester.report.version:
            print_summary(config, tester.report)
        return 1
    except KeyboardInterrupt:
        console.error("Interrupted")
        return 130

    if not args.setup_only:
        print_summary(config, report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
