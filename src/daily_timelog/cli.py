import argparse
import logging
import shlex
import sys
from datetime import date
from pathlib import Path
from typing import Callable, Sequence, TextIO

from .config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_DATE_FORMAT,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_MINUTES_PER_ENTRY,
    EXPORT_FORMATS,
    ConfigError,
    load_config,
    save_config,
)
from .export import WRITERS, select_logs, week_bounds
from .formatting import day_header, duration_string, format_logs, short_id
from .forms import EditEntryForm, FormError, NewEntryForm, duration_warning, parse_day
from .logging_setup import setup_logging
from .models import Config
from .store import LogStore

logger = logging.getLogger(__name__)

PROMPT = "timelog> "


class ShellArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise FormError(message)


class Shell:
    def __init__(
        self,
        store: LogStore,
        config: Config,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.config = config
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.today = today
        self.running = True
        self.parser = build_shell_parser()

    def out(self, message: str) -> None:
        print(message, file=self.stdout)

    def err(self, message: str) -> None:
        print(message, file=self.stderr)

    def run(self) -> int:
        interactive = self.stdin.isatty()
        if interactive:
            self.out("Daily time log. Type 'help' for commands, 'quit' to leave.")
        while self.running:
            if interactive:
                self.stdout.write(PROMPT)
                self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                break
            self.execute(line)
        return 0

    def execute(self, line: str) -> int:
        try:
            tokens = shlex.split(line, comments=True)
        except ValueError as exc:
            self.err(str(exc))
            return 2
        if not tokens:
            return 0
        if tokens[0] in {"quit", "exit"}:
            self.running = False
            return 0
        if tokens[0] == "help":
            self.parser.print_help(file=self.stdout)
            return 0
        try:
            args = self.parser.parse_args(tokens)
            return args.func(self, args)
        except (FormError, LookupError) as exc:
            self.err(str(exc))
            return 2


def warn_duration(shell: Shell, minutes: int) -> None:
    warning = duration_warning(minutes, shell.config.max_minutes_per_entry)
    if warning:
        shell.err(f"Warning: {warning}")


def add_command(shell: Shell, args: argparse.Namespace) -> int:
    form = NewEntryForm(
        entry_date=parse_day(args.date, shell.today()),
        project=args.project.strip(),
        description=args.description.strip(),
        duration=args.minutes,
    )
    entry_date, project, description, minutes = form.validate()
    warn_duration(shell, minutes)
    entry = shell.store.add_entry(entry_date, project, description, minutes)
    shell.out(
        f"Added entry {short_id(entry.entry_id)} on {entry_date.isoformat()} "
        f"({duration_string(minutes)})"
    )
    return 0


def list_command(shell: Shell, args: argparse.Namespace) -> int:
    if args.date is None:
        logs = list(shell.store.logs)
    else:
        log = shell.store.log_for_date(parse_day(args.date, shell.today()))
        logs = [log] if log else []
    shell.out(format_logs(logs, shell.config.date_format))
    return 0


def edit_command(shell: Shell, args: argparse.Namespace) -> int:
    entry = shell.store.resolve_entry(args.entry_id)
    if args.project is None and args.description is None and args.minutes is None:
        shell.err("No fields provided to update.")
        return 2
    form = EditEntryForm(
        entry=entry,
        project=entry.project if args.project is None else args.project.strip(),
        description=(
            entry.description if args.description is None else args.description.strip()
        ),
        duration=str(entry.duration_minutes) if args.minutes is None else args.minutes,
    )
    updated = form.to_entry()
    warn_duration(shell, updated.duration_minutes)
    shell.store.update_entry(updated)
    shell.out(f"Updated entry {short_id(updated.entry_id)}.")
    return 0


def remove_command(shell: Shell, args: argparse.Namespace) -> int:
    entry = shell.store.resolve_entry(args.entry_id)
    day = next(log.log_date for log, item in shell.store.entries() if item == entry)
    shell.store.delete_entry(entry)
    shell.out(f"Removed entry {short_id(entry.entry_id)}.")
    if shell.store.log_for_date(day) is None:
        shell.out(f"No entries left on {day.isoformat()}.")
    return 0


def total_command(shell: Shell, args: argparse.Namespace) -> int:
    day = parse_day(args.date, shell.today())
    log = shell.store.log_for_date(day)
    if log is None:
        shell.out(f"{day.isoformat()}: {duration_string(0)}")
        return 0
    shell.out(
        day_header(log, shell.config.date_format, shell.store.total_minutes(log))
    )
    return 0


def export_command(shell: Shell, args: argparse.Namespace) -> int:
    logs = list(shell.store.logs)
    label = "all days"
    if args.week is not None:
        start, end = week_bounds(parse_day(args.week, shell.today()))
        logs = select_logs(logs, start=start, end=end)
        label = f"week {start.isoformat()} to {end.isoformat()}"
    writer = WRITERS[args.format or shell.config.default_export_format]

    if args.output:
        path = Path(args.output).expanduser()
        try:
            with path.open("w", newline="", encoding="utf-8") as output:
                count = writer(logs, output)
        except OSError as exc:
            logger.warning("Export to %s failed: %s", path, exc)
            shell.err(f"Cannot write {path}: {exc.strerror}")
            return 2
        shell.out(f"Exported {count} entries for {label} to {path}.")
    else:
        count = writer(logs, shell.stdout)
        shell.err(f"Exported {count} entries for {label}.")
    logger.info("Exported %s entries (%s)", count, label)
    return 0


def build_shell_parser() -> argparse.ArgumentParser:
    parser = ShellArgumentParser(prog="", add_help=False)
    subparsers = parser.add_subparsers(
        dest="command", required=True, parser_class=ShellArgumentParser
    )

    add_parser = subparsers.add_parser("add", help="Add a time entry", add_help=False)
    add_parser.add_argument("--project", "-p", required=True)
    add_parser.add_argument("--description", "-d", required=True)
    add_parser.add_argument("--minutes", "-m", required=True)
    add_parser.add_argument("--date", help="YYYY-MM-DD, today or yesterday (default: today)")
    add_parser.set_defaults(func=add_command)

    list_parser = subparsers.add_parser("list", help="List logged days", add_help=False)
    list_parser.add_argument("--date", help="YYYY-MM-DD")
    list_parser.set_defaults(func=list_command)

    edit_parser = subparsers.add_parser("edit", help="Edit an entry", add_help=False)
    edit_parser.add_argument("--id", dest="entry_id", required=True)
    edit_parser.add_argument("--project", "-p")
    edit_parser.add_argument("--description", "-d")
    edit_parser.add_argument("--minutes", "-m")
    edit_parser.set_defaults(func=edit_command)

    remove_parser = subparsers.add_parser("remove", help="Remove an entry", add_help=False)
    remove_parser.add_argument("--id", dest="entry_id", required=True)
    remove_parser.set_defaults(func=remove_command)

    total_parser = subparsers.add_parser("total", help="Show a day's total", add_help=False)
    total_parser.add_argument("--date", help="YYYY-MM-DD (default: today)")
    total_parser.set_defaults(func=total_command)

    export_parser = subparsers.add_parser(
        "export", help="Export entries as CSV or JSON", add_help=False
    )
    export_parser.add_argument("--week", help="Any date in the target week (YYYY-MM-DD)")
    export_parser.add_argument("--format", choices=list(EXPORT_FORMATS))
    export_parser.add_argument("--output", help="Write to file instead of stdout")
    export_parser.set_defaults(func=export_command)

    return parser


def init_command(args: argparse.Namespace) -> int:
    config_path = Path(args.config).expanduser().resolve()
    config = Config(
        date_format=args.date_format,
        max_minutes_per_entry=args.max_minutes_per_entry,
        log_dir=Path(args.log_dir).expanduser().resolve(),
        log_level=args.log_level,
        default_export_format=args.export_format,
    )
    save_config(config_path, config)
    print(f"Initialized config at {config_path}")
    return 0


def shell_command(args: argparse.Namespace, config: Config) -> int:
    return Shell(LogStore(), config).run()


def gui_command(args: argparse.Namespace, config: Config) -> int:
    from .gui import run_gui

    return run_gui(LogStore(), config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily-timelog",
        description="Log time entries grouped by day (in memory, per session).",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to config file (default: ~/.daily_timelog/config.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log debug output to the console"
    )

    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser("init", help="Create a config file")
    init_parser.add_argument("--date-format", default=DEFAULT_DATE_FORMAT)
    init_parser.add_argument(
        "--max-minutes-per-entry",
        default=DEFAULT_MAX_MINUTES_PER_ENTRY,
        type=int,
        help="Warning threshold for large entries",
    )
    init_parser.add_argument("--log-dir", default=str(DEFAULT_LOG_DIR))
    init_parser.add_argument(
        "--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    init_parser.add_argument("--export-format", default="csv", choices=list(EXPORT_FORMATS))
    init_parser.set_defaults(func=init_command)

    shell_parser = subparsers.add_parser("shell", help="Interactive session (default)")
    shell_parser.set_defaults(session=shell_command)

    gui_parser = subparsers.add_parser("gui", help="Open the desktop window")
    gui_parser.set_defaults(session=gui_command)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "init":
        return args.func(args)

    try:
        config = load_config(Path(args.config).expanduser())
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    console_level = logging.DEBUG if args.verbose else getattr(logging, config.log_level)
    try:
        setup_logging(log_dir=config.log_dir, console_level=console_level)
    except OSError as exc:
        print(f"Cannot create log directory {config.log_dir}: {exc.strerror}", file=sys.stderr)
        return 2
    logger.debug("Loaded config from %s", args.config)

    session = getattr(args, "session", shell_command)
    return session(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
