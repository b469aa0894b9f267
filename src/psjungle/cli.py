"""psjungle - command line entry point."""

import argparse
import re
import sys
from collections.abc import Sequence

from rich.console import Console

from psjungle.app import WatchApp
from psjungle.config import Settings
from psjungle.cycle import run_cycle
from psjungle.errors import ConfigError, InvalidSignalError, NoProcessesFoundError, PsjungleError
from psjungle.log import setup_logging
from psjungle.monitor import ProcessMonitor
from psjungle.signals import is_signal_value, parse_signal

USAGE = "psjungle [options] [PID|:port|pattern]..."

EPILOG = """\
examples:
  psjungle 1234                    tree for PID 1234
  psjungle :8080                   trees for processes on port 8080
  psjungle :8080 --host 127.0.0.1  only listeners bound to localhost
  psjungle node                    processes matching the regex "node"
  psjungle -s "node.*8080"         literal substring "node.*8080"
  psjungle 1234 5678               several PIDs, overlapping trees shown once
  psjungle -w 1234                 watch PID 1234, refresh every 2 seconds
  psjungle -w=5 :3000              watch port 3000, refresh every 5 seconds
  psjungle -k=9 :8080              show trees for port 8080, then SIGKILL them
  psjungle -k hup node             show trees for "node", then SIGHUP them

By default patterns are regular expressions; -s matches literal strings.
Several arguments are always treated as PIDs.

Output format: PID CPU% Memory CommandLine (target highlighted in green)
"""

WATCH_VALUE_RE = re.compile(r"=?([0-9]+(\.[0-9]+)?)")


def preprocess_args(args: Sequence[str]) -> list[str]:
    """
    Rewrite the short forms argparse cannot read on its own.

    ``-w2`` and ``-w=2`` become ``-w 2``; ``-k9`` and ``-k=9`` become
    ``-k 9``. A bare ``-w`` never takes the next argument, which is the
    target. A bare ``-k`` only takes the next argument when it is a signal
    name or number.
    """
    processed: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        following = args[i + 1] if i + 1 < len(args) else None

        if arg.startswith("-w") and len(arg) > 2 and WATCH_VALUE_RE.fullmatch(arg[2:]):
            processed += ["-w", arg[2:].lstrip("=")]
        elif arg.startswith("-k") and len(arg) > 2:
            processed += ["-k", arg[2:].removeprefix("=")]
        elif arg == "-w":
            processed += ["-w", ""]
        elif arg == "-k":
            if following is not None and is_signal_value(following):
                processed += ["-k", following]
                i += 1
            else:
                processed += ["-k", ""]
        else:
            processed.append(arg)
        i += 1

    return processed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="psjungle",
        usage=USAGE,
        description="Display process trees for PIDs, ports, or patterns.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("targets", nargs="*", metavar="TARGET", help="PID, :port or name pattern")
    parser.add_argument(
        "-w",
        "--watch",
        nargs="?",
        const="",
        default=None,
        metavar="SECONDS",
        help="refresh every SECONDS (default 2); use -w2, -w=2 or --watch=2",
    )
    parser.add_argument("-f", "--flat", action="store_true", help="no tree indentation")
    parser.add_argument("-s", "--strict", action="store_true", help="literal substring match, not regex")
    parser.add_argument("-i", "--ignore-case", action="store_true", help="case-insensitive regex matching")
    parser.add_argument("-H", "--host", default=None, help="only listeners on HOST (with :port)")
    parser.add_argument(
        "-k",
        "--kill",
        nargs="?",
        const="",
        default=None,
        metavar="SIGNAL",
        help="send SIGNAL (default TERM) to displayed targets after printing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    return parser


def watch_interval(value: str, default: float) -> float:
    """Interval from a ``-w`` value, ``default`` when it is not a number."""
    match = WATCH_VALUE_RE.fullmatch(value)
    if match is None or float(match.group(1)) <= 0:
        return default
    return float(match.group(1))


def status_line(args: argparse.Namespace, interval: float) -> str:
    """Header shown in watch mode, echoing the effective command."""
    parts = [f"Every {interval:.1f}s: psjungle -w{args.watch}"]
    if args.strict:
        parts.append("-s")
    if args.host:
        parts.append(f"--host {args.host}")
    if args.kill is not None:
        parts.append(f"-k={args.kill}" if args.kill else "-k")
    parts.extend(args.targets)
    return " ".join(parts)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the psjungle command."""
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    args = parser.parse_intermixed_args(preprocess_args(argv))

    setup_logging(args.verbose)
    err_console = Console(stderr=True, highlight=False, markup=False)

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        err_console.print(f"Error: {exc}")
        return 1

    if not args.targets:
        parser.print_help()
        if args.watch is not None:
            err_console.print("Watch mode requires at least one target PID/port/name")
        return 1

    try:
        signum = parse_signal(args.kill) if args.kill is not None else None
    except InvalidSignalError as exc:
        err_console.print(f"Error parsing signal: {exc}")
        return 1

    settings = settings.replace(
        flat=args.flat,
        strict=args.strict,
        ignore_case=args.ignore_case or settings.ignore_case,
        host=args.host,
        signal=signum,
    )
    if args.watch is not None:
        settings = settings.replace(interval=watch_interval(args.watch, settings.interval))

    console = Console(highlight=False, markup=False, soft_wrap=True, no_color=not settings.color)

    provider = ProcessMonitor(deadline=settings.deadline)

    if args.watch is not None:
        app = WatchApp(args.targets, settings, provider, status=status_line(args, settings.interval))
        app.run()
        return app.return_code or 0

    try:
        result = run_cycle(args.targets, provider, settings)
    except NoProcessesFoundError as exc:
        console.print(str(exc))
        return 1
    except PsjungleError as exc:
        err_console.print(f"Error: {exc}")
        return 1

    for line in result.output():
        console.print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
