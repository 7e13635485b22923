"""
backend_win32.py  –  window API on Windows (pywin32 + psutil)

An "application" here is a process that owns at least one visible
top-level window; its display name is the process name without ".exe"
and its bundle id is the executable path.  Windows has no accessibility
gate, so permission is always granted; windows of elevated processes
silently ignore our moves (UIPI).
"""

from typing import Any, Dict, List, Optional, Set, Tuple

import psutil
import win32con
import win32gui
import win32process

from window_positions import AppInfo, Point, Size, WindowBackend

# Processes that own visible top-level windows but are shell/UWP plumbing
# rather than user-facing applications.
_BLOCKED_PROC: Set[str] = {
    "textinputhost.exe",          # Windows Input Experience
    "applicationframehost.exe",   # UWP shell host
    "shellhost.exe",
    "startmenuexperiencehost.exe",
    "searchhost.exe",
    "searchapp.exe",
    "lockapp.exe",
    "dwm.exe",
    "fontdrvhost.exe",
}

# Window classes that are always noise.
_BLOCKED_CLASS: Set[str] = {
    "windows.ui.core.corewindow",
    "progman",
    "workerw",
}

_SWP_QUIET = win32con.SWP_NOZORDER | win32con.SWP_NOACTIVATE


# ══════════════════════════════════════════════════════════════════════════
#  Tiny helpers
# ══════════════════════════════════════════════════════════════════════════
def _safe_class(hwnd: int) -> str:
    try:    return win32gui.GetClassName(hwnd) or ""
    except Exception: return ""

def _get_pid(hwnd: int) -> int:
    try:
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
        return int(pid or 0)
    except Exception: return 0

def _proc_info(pid: int) -> Tuple[str, str]:
    """Returns (process_name, exe_path)."""
    if not pid: return "", ""
    try:
        p = psutil.Process(pid)
        return (p.name() or ""), (p.exe() or "")
    except Exception: return "", ""

def _display_name(proc: str) -> str:
    return proc[:-4] if proc.lower().endswith(".exe") else proc

def _top_level_windows() -> List[int]:
    """Visible, parentless windows in EnumWindows (z-) order."""
    hwnds: List[int] = []

    def _cb(hwnd, _):
        if not win32gui.IsWindowVisible(hwnd): return
        if win32gui.GetParent(hwnd):           return
        if _safe_class(hwnd).strip().lower() in _BLOCKED_CLASS: return
        hwnds.append(hwnd)

    win32gui.EnumWindows(_cb, None)
    return hwnds

def _is_app_window(hwnd: int) -> bool:
    """Taskbar-style window: WS_EX_APPWINDOW, or neither a tool window nor owned."""
    try:
        ex_style = win32gui.GetWindowLong(hwnd, win32con.GWL_EXSTYLE)
        owner    = win32gui.GetWindow(hwnd, win32con.GW_OWNER)
    except Exception:
        ex_style, owner = 0, 0
    if ex_style & win32con.WS_EX_APPWINDOW:
        return True
    if ex_style & win32con.WS_EX_TOOLWINDOW:
        return False
    return not owner


# ══════════════════════════════════════════════════════════════════════════
#  Backend
# ══════════════════════════════════════════════════════════════════════════
class Win32Backend(WindowBackend):

    def check_and_request_permission(self) -> bool:
        return True

    def list_running_applications(self) -> List[AppInfo]:
        apps: Dict[int, AppInfo] = {}
        blocked: Set[int] = set()
        for hwnd in _top_level_windows():
            pid = _get_pid(hwnd)
            if not pid:
                continue
            if pid not in apps:
                proc, exe = _proc_info(pid)
                apps[pid] = AppInfo(
                    display_name=_display_name(proc),
                    is_regular=False,
                    bundle_id=exe,
                    handle=pid,
                )
                if proc.lower() in _BLOCKED_PROC:
                    blocked.add(pid)
            if pid not in blocked and _is_app_window(hwnd):
                apps[pid].is_regular = True
        return list(apps.values())

    def list_windows(self, app_handle: Any) -> Tuple[bool, List[Any]]:
        try:
            hwnds = [h for h in _top_level_windows()
                     if _get_pid(h) == app_handle and _is_app_window(h)]
        except Exception:
            return False, []
        return True, hwnds

    def read_window_title(self, window: Any) -> Optional[str]:
        try:
            return win32gui.GetWindowText(window) or ""
        except Exception:
            return None

    def read_window_position(self, window: Any) -> Optional[Point]:
        try:
            left, top, _, _ = win32gui.GetWindowRect(window)
        except Exception:
            return None
        return Point(float(left), float(top))

    def read_window_size(self, window: Any) -> Optional[Size]:
        try:
            left, top, right, bottom = win32gui.GetWindowRect(window)
        except Exception:
            return None
        return Size(float(right - left), float(bottom - top))

    def write_window_position(self, window: Any, position: Point) -> None:
        try:
            win32gui.SetWindowPos(window, 0, int(position.x), int(position.y), 0, 0,
                                  win32con.SWP_NOSIZE | _SWP_QUIET)
        except Exception:
            pass

    def write_window_size(self, window: Any, size: Size) -> None:
        try:
            win32gui.SetWindowPos(window, 0, 0, 0, int(size.width), int(size.height),
                                  win32con.SWP_NOMOVE | _SWP_QUIET)
        except Exception:
            pass
