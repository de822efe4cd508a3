import inspect
import textwrap
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from dateutil import tz

from .notifier_env import resolve_home
from .recurrence import local_datetime, local_zone

# Display and edit format for drop timestamps, always local time.
DISPLAY_FMT = "%H:%M:%S %d/%m/%Y"

READY = "Ready!"
UNKNOWN = "unknown"


def format_date(timestamp: int) -> str:
    """Unix seconds -> 'HH:MM:SS DD/MM/YYYY' in local time."""
    return local_datetime(timestamp).strftime(DISPLAY_FMT)


def parse_date(text: str) -> Optional[int]:
    """
    'HH:MM:SS DD/MM/YYYY' (local) -> Unix seconds, or None when the text
    does not match the format or lies before the epoch.
    """
    try:
        naive = datetime.strptime(text, DISPLAY_FMT)
    except (TypeError, ValueError):
        return None
    aware = tz.resolve_imaginary(naive.replace(tzinfo=local_zone()))
    try:
        timestamp = int(aware.timestamp())
    except (OverflowError, OSError, ValueError):
        return None
    if timestamp < 0:
        return None
    return timestamp


def format_remaining(seconds: int) -> str:
    """Seconds -> 'D:HH:MM:SS'."""
    seconds = max(0, int(seconds))
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{days}:{hours:02}:{minutes:02}:{secs:02}"


def duration_in_words(seconds: int, short: bool = False) -> str:
    """
    Convert a duration (seconds) into a human-readable string.
    """
    total_seconds = abs(int(seconds))
    units = [
        ("day", 86400),
        ("hour", 3600),
        ("minute", 60),
        ("second", 1),
    ]
    parts: list[str] = []
    for name, unit_seconds in units:
        value, total_seconds = divmod(total_seconds, unit_seconds)
        if value:
            parts.append(f"{value} {name}{'s' if value > 1 else ''}")
    if not parts:
        return "now"
    return " ".join(parts[:2]) if short else " ".join(parts)


def _resolve_log_file_path(file_path: str | Path) -> Path:
    path = Path(file_path)
    if path.is_absolute():
        return path
    return resolve_home() / path


def _default_log_relative_path(kind: str) -> Path:
    """Return logs/log_<YYMMDD>.md style paths under the workspace home."""
    suffix = datetime.now().strftime("%y%m%d")
    return Path("logs") / f"{kind}_{suffix}.md"


def log_msg(
    msg: str,
    file_path: str | Path | None = None,
    print_output: bool = False,
):
    """
    Log a message and save it directly to a file.

    Args:
        msg (str): The message to log.
        file_path (str | Path | None, optional): Overrides the default path when
            provided. Defaults to ``None`` which writes to ``logs/log_<YYMMDD>.md``.
        print_output (bool, optional): If True, also print to console.
    """
    frame = inspect.stack()[1].frame
    func_name = frame.f_code.co_name

    caller_name = func_name

    # Detect instance/class/static context
    if "self" in frame.f_locals:
        cls_name = frame.f_locals["self"].__class__.__name__
        caller_name = f"{cls_name}.{func_name}"
    elif "cls" in frame.f_locals:
        cls_name = frame.f_locals["cls"].__name__
        caller_name = f"{cls_name}.{func_name}"

    lines = [
        f"- {datetime.now().strftime('%H:%M:%S')} log_msg ({caller_name}):  ",
    ]
    lines.extend(
        [
            f"\n{x}"
            for x in textwrap.wrap(
                msg.strip(),
                width=max(20, shutil.get_terminal_size()[0] - 6),
                initial_indent="   ",
                subsequent_indent="   ",
            )
        ]
    )
    lines.append("\n\n")

    # Best-effort file logging; fall back to console when the file is unwritable.
    if file_path is None:
        file_path = _default_log_relative_path("log")
    log_path = _resolve_log_file_path(file_path)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.writelines(lines)
    except OSError:
        print_output = True

    if print_output:
        print("".join(lines))
