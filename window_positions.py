"""
window_positions.py  –  Save & restore desktop window geometry
==============================================================

Snapshot format: a JSON array, one object per window
    {"appName": str, "windowTitle": str, "x": num, "y": num,
     "width": num, "height": num}

Key behaviours
  · Capture walks every regular application (activation policy "regular",
    bundle id and display name present) and records each window that has a
    non-empty title and readable position + size.  Unreadable windows are
    skipped, never fatal.
  · Saving always replaces the whole file.
  · Restore matches on app display name, then window title; both exact and
    case-sensitive, first match wins.  Records with no live counterpart are
    skipped and only show up as a lower restored count.
  · Geometry is written position-then-size and never read back; the window
    server is free to clamp it.
  · A missing or malformed snapshot file aborts restore before anything is
    touched.
"""

import argparse
import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

# ══════════════════════════════════════════════════════════════════════════
#  Constants
# ══════════════════════════════════════════════════════════════════════════
DEFAULT_FILE = "window_positions.json"
CONFIG_PATH  = "config.json"

_STR_FIELDS = ("appName", "windowTitle")
_NUM_FIELDS = ("x", "y", "width", "height")


# ══════════════════════════════════════════════════════════════════════════
#  Errors
# ══════════════════════════════════════════════════════════════════════════
class WindowPositionsError(Exception):
    """Base class for failures that abort a whole command."""


class PermissionDenied(WindowPositionsError):
    pass


class SnapshotReadError(WindowPositionsError):
    pass


class SnapshotWriteError(WindowPositionsError):
    pass


class UnsupportedPlatform(WindowPositionsError):
    pass


# ══════════════════════════════════════════════════════════════════════════
#  Data model
# ══════════════════════════════════════════════════════════════════════════
class Point(NamedTuple):
    x: float
    y: float


class Size(NamedTuple):
    width: float
    height: float


@dataclass
class AppInfo:
    display_name: str
    is_regular: bool
    bundle_id: str
    handle: Any


@dataclass(frozen=True)
class WindowRecord:
    app_name: str
    window_title: str
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appName":     self.app_name,
            "windowTitle": self.window_title,
            "x":           self.x,
            "y":           self.y,
            "width":       self.width,
            "height":      self.height,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WindowRecord":
        """Build a record from its JSON object; ValueError on a bad shape."""
        for key in _STR_FIELDS:
            if not isinstance(d.get(key), str):
                raise ValueError(f"field {key!r} must be a string")
        for key in _NUM_FIELDS:
            v = d.get(key)
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise ValueError(f"field {key!r} must be a number")
        return cls(
            app_name=d["appName"],
            window_title=d["windowTitle"],
            x=float(d["x"]),
            y=float(d["y"]),
            width=float(d["width"]),
            height=float(d["height"]),
        )

    def rect_label(self) -> str:
        return f"({self.x:g}, {self.y:g}, {self.width:g}, {self.height:g})"


# ══════════════════════════════════════════════════════════════════════════
#  Collaborator API
# ══════════════════════════════════════════════════════════════════════════
class WindowBackend:
    """
    Platform window API as seen by capture and restore.

    App and window handles are opaque: they are only ever handed back to
    the backend that produced them.  Reads return None (or (False, [])
    for window lists) instead of raising.  Writes are fire-and-forget.
    """

    def check_and_request_permission(self) -> bool:
        raise NotImplementedError

    def list_running_applications(self) -> List[AppInfo]:
        raise NotImplementedError

    def list_windows(self, app_handle: Any) -> Tuple[bool, List[Any]]:
        raise NotImplementedError

    def read_window_title(self, window: Any) -> Optional[str]:
        raise NotImplementedError

    def read_window_position(self, window: Any) -> Optional[Point]:
        raise NotImplementedError

    def read_window_size(self, window: Any) -> Optional[Size]:
        raise NotImplementedError

    def write_window_position(self, window: Any, position: Point) -> None:
        raise NotImplementedError

    def write_window_size(self, window: Any, size: Size) -> None:
        raise NotImplementedError


def get_backend(platform: Optional[str] = None) -> WindowBackend:
    platform = platform or sys.platform
    if platform == "darwin":
        import backend_macos
        return backend_macos.MacOSBackend()
    if platform == "win32":
        import backend_win32
        return backend_win32.Win32Backend()
    raise UnsupportedPlatform(f"No window backend for platform {platform!r}")


def _require_permission(backend: WindowBackend) -> None:
    if not backend.check_and_request_permission():
        raise PermissionDenied("Accessibility permission not granted")


# ══════════════════════════════════════════════════════════════════════════
#  Capture
# ══════════════════════════════════════════════════════════════════════════
def is_eligible(app: AppInfo) -> bool:
    """True for regular, user-facing apps with a bundle id and a name."""
    return bool(app.is_regular and app.bundle_id and app.display_name)


def build_record(backend: WindowBackend, window: Any,
                 app_name: str) -> Optional[WindowRecord]:
    title = backend.read_window_title(window)
    if not title:
        return None
    pos = backend.read_window_position(window)
    if pos is None:
        return None
    size = backend.read_window_size(window)
    if size is None:
        return None
    return WindowRecord(
        app_name=app_name,
        window_title=title,
        x=float(pos.x),
        y=float(pos.y),
        width=float(size.width),
        height=float(size.height),
    )


def capture_snapshot(backend: WindowBackend,
                     verbose: bool = False) -> List[WindowRecord]:
    records: List[WindowRecord] = []
    for app in backend.list_running_applications():
        if not is_eligible(app):
            continue
        ok, windows = backend.list_windows(app.handle)
        if not ok:
            if verbose:
                print(f"  SKIP    {app.display_name}  (window list unavailable)")
            continue
        for window in windows:
            rec = build_record(backend, window, app.display_name)
            if rec is None:
                if verbose:
                    print(f"  SKIP    {app.display_name}  (untitled or unreadable window)")
                continue
            if verbose:
                print(f"  CAPTURE {rec.app_name}  \"{rec.window_title[:60]}\"  "
                      f"rect={rec.rect_label()}")
            records.append(rec)
    return records


# ══════════════════════════════════════════════════════════════════════════
#  Snapshot file
# ══════════════════════════════════════════════════════════════════════════
def write_snapshot(path: str, records: Iterable[WindowRecord]) -> None:
    try:
        payload = [r.to_dict() for r in records]
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as exc:
        raise SnapshotWriteError(
            f"Error saving window positions to {path}: {exc}") from exc


def read_snapshot(path: str) -> List[WindowRecord]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise SnapshotReadError(
            f"Error reading window positions from {path}: {exc}") from exc

    if not isinstance(data, list):
        raise SnapshotReadError(
            f"Error reading window positions from {path}: "
            f"expected a JSON array, got {type(data).__name__}")
    records: List[WindowRecord] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise SnapshotReadError(
                f"Error reading window positions from {path}: "
                f"entry {i} is not an object")
        try:
            records.append(WindowRecord.from_dict(item))
        except ValueError as exc:
            raise SnapshotReadError(
                f"Error reading window positions from {path}: "
                f"entry {i}: {exc}") from exc
    return records


def save_snapshot(path: str, backend: Optional[WindowBackend] = None,
                  verbose: bool = False) -> int:
    backend = backend or get_backend()
    _require_permission(backend)
    records = capture_snapshot(backend, verbose=verbose)
    write_snapshot(path, records)
    print(f"Saved {len(records)} window positions to {path}")
    return len(records)


# ══════════════════════════════════════════════════════════════════════════
#  Matching
# ══════════════════════════════════════════════════════════════════════════
def match_application(app_name: str,
                      apps: Iterable[AppInfo]) -> Optional[AppInfo]:
    """
    First running app whose display name equals app_name exactly.

    Several instances sharing a name are not told apart; only the first
    one enumerated is ever considered.
    """
    for app in apps:
        if app.display_name == app_name:
            return app
    return None


def match_window(title: str,
                 windows: Iterable[Tuple[Any, Optional[str]]]) -> Optional[Any]:
    """
    First window whose live title equals title exactly.

    windows yields (handle, live_title) pairs and is consumed only up to
    the first hit, so a lazy iterable never reads the titles behind it.
    An unreadable (None) title never equals a str title.
    """
    for handle, live_title in windows:
        if live_title == title:
            return handle
    return None


def _titled(backend: WindowBackend,
            windows: Iterable[Any]) -> Iterator[Tuple[Tuple[int, Any], Optional[str]]]:
    """Pairs (index, window) with its live title, read on demand."""
    for i, window in enumerate(windows):
        yield (i, window), backend.read_window_title(window)


def find_target(backend: WindowBackend, record: WindowRecord,
                apps: List[AppInfo]) -> Tuple[Optional[Any], str]:
    """Returns (window, outcome) where outcome describes the lookup."""
    app = match_application(record.app_name, apps)
    if app is None:
        return None, "no running app"
    ok, windows = backend.list_windows(app.handle)
    if not ok:
        return None, "window list unavailable"
    hit = match_window(record.window_title, _titled(backend, windows))
    if hit is None:
        return None, f"no title match among {len(windows)} windows"
    index, window = hit
    return window, f"matched window #{index}"


def apply_geometry(backend: WindowBackend, window: Any,
                   record: WindowRecord) -> None:
    backend.write_window_position(window, Point(record.x, record.y))
    backend.write_window_size(window, Size(record.width, record.height))


# ══════════════════════════════════════════════════════════════════════════
#  Restore
# ══════════════════════════════════════════════════════════════════════════
def restore_snapshot(
    path: str,
    backend: Optional[WindowBackend] = None,
    verbose: bool = False,
    diagnostics: bool = False,
    dry_run: bool = False,
) -> int:
    backend = backend or get_backend()
    _require_permission(backend)
    records = read_snapshot(path)

    apps     = backend.list_running_applications()
    restored = 0
    for rec in records:
        window, outcome = find_target(backend, rec, apps)
        if diagnostics:
            print(f"[DIAG] Target: app={rec.app_name} "
                  f"title={rec.window_title}  -> {outcome}")
        if window is None:
            if verbose:
                print(f"  SKIP    {rec.app_name}  \"{rec.window_title[:60]}\"  ({outcome})")
            continue
        if not dry_run:
            apply_geometry(backend, window, rec)
        if verbose:
            print(f"  RESTORE {rec.app_name}  \"{rec.window_title[:60]}\"  "
                  f"-> {rec.rect_label()}")
        restored += 1

    verb = "Would restore" if dry_run else "Restored"
    print(f"{verb} {restored} window positions "
          f"(Skipped={len(records) - restored}, Total={len(records)})")
    return restored


# ══════════════════════════════════════════════════════════════════════════
#  Config
# ══════════════════════════════════════════════════════════════════════════
def _load_config(path: str = CONFIG_PATH) -> Dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            d = json.load(f)
        return d if isinstance(d, dict) else {}
    except Exception:
        return {}


def resolve_path(filename: str) -> str:
    return os.path.join(os.getcwd(), filename)


# ══════════════════════════════════════════════════════════════════════════
#  CLI entry point
# ══════════════════════════════════════════════════════════════════════════
def build_parser(default_file: str = DEFAULT_FILE,
                 default_verbose: bool = False) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="window-positions",
        description="Save/restore the position and size of application windows.",
        epilog=f"Default filename: {default_file}",
    )
    s = p.add_subparsers(dest="cmd", required=True)

    sp = s.add_parser("save", help="Save current window positions")
    sp.add_argument("filename", nargs="?", default=default_file)
    sp.add_argument("--verbose", "-v", action="store_true", default=default_verbose)

    sp = s.add_parser("restore", help="Restore saved window positions")
    sp.add_argument("filename", nargs="?", default=default_file)
    sp.add_argument("--diagnostics", action="store_true",
                    help="Print the match outcome for every saved window")
    sp.add_argument("--dry-run", action="store_true",
                    help="Match windows but do not move or resize them")
    sp.add_argument("--verbose", "-v", action="store_true", default=default_verbose)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv:
        argv[0] = argv[0].lower()

    cfg = _load_config()
    p = build_parser(
        default_file=str(cfg.get("default_file") or DEFAULT_FILE),
        default_verbose=cfg.get("verbose") is True,
    )
    args = p.parse_args(argv)
    path = resolve_path(args.filename)

    try:
        if args.cmd == "save":
            save_snapshot(path, verbose=args.verbose)
        elif args.cmd == "restore":
            restore_snapshot(path,
                             verbose=args.verbose,
                             diagnostics=args.diagnostics,
                             dry_run=args.dry_run)
    except WindowPositionsError as exc:
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
