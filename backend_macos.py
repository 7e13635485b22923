"""
backend_macos.py  –  window API on macOS (AppKit + Accessibility)

Requires the Accessibility permission for the process running Python
(System Settings > Privacy & Security > Accessibility).
"""

from typing import Any, List, Optional, Tuple

from AppKit import NSApplicationActivationPolicyRegular, NSWorkspace
from ApplicationServices import (
    AXIsProcessTrustedWithOptions,
    AXUIElementCopyAttributeValue,
    AXUIElementCreateApplication,
    AXUIElementSetAttributeValue,
    AXValueCreate,
    AXValueGetValue,
    kAXErrorSuccess,
    kAXPositionAttribute,
    kAXSizeAttribute,
    kAXTitleAttribute,
    kAXTrustedCheckOptionPrompt,
    kAXValueCGPointType,
    kAXValueCGSizeType,
    kAXWindowsAttribute,
)
from Quartz import CGPoint, CGSize

from window_positions import AppInfo, Point, Size, WindowBackend


def _copy_attr(element: Any, attribute: str) -> Any:
    """Attribute value, or None when the AX call fails."""
    try:
        err, value = AXUIElementCopyAttributeValue(element, attribute, None)
    except Exception:
        return None
    if err != kAXErrorSuccess:
        return None
    return value


def _unpack(value: Any, ax_type: int) -> Any:
    if value is None:
        return None
    try:
        ok, out = AXValueGetValue(value, ax_type, None)
    except Exception:
        return None
    return out if ok else None


class MacOSBackend(WindowBackend):

    def check_and_request_permission(self) -> bool:
        trusted = bool(AXIsProcessTrustedWithOptions({kAXTrustedCheckOptionPrompt: True}))
        if not trusted:
            print("Accessibility permission required!")
            print("Grant it in System Settings > Privacy & Security > Accessibility,")
            print("add this application (or your terminal) and try again.")
        return trusted

    def list_running_applications(self) -> List[AppInfo]:
        apps: List[AppInfo] = []
        for app in NSWorkspace.sharedWorkspace().runningApplications():
            apps.append(AppInfo(
                display_name=str(app.localizedName() or ""),
                is_regular=app.activationPolicy() == NSApplicationActivationPolicyRegular,
                bundle_id=str(app.bundleIdentifier() or ""),
                handle=int(app.processIdentifier()),
            ))
        return apps

    def list_windows(self, app_handle: Any) -> Tuple[bool, List[Any]]:
        app_ref = AXUIElementCreateApplication(app_handle)
        windows = _copy_attr(app_ref, kAXWindowsAttribute)
        if windows is None:
            return False, []
        return True, list(windows)

    def read_window_title(self, window: Any) -> Optional[str]:
        title = _copy_attr(window, kAXTitleAttribute)
        return str(title) if isinstance(title, str) else None

    def read_window_position(self, window: Any) -> Optional[Point]:
        pt = _unpack(_copy_attr(window, kAXPositionAttribute), kAXValueCGPointType)
        return None if pt is None else Point(float(pt.x), float(pt.y))

    def read_window_size(self, window: Any) -> Optional[Size]:
        sz = _unpack(_copy_attr(window, kAXSizeAttribute), kAXValueCGSizeType)
        return None if sz is None else Size(float(sz.width), float(sz.height))

    def write_window_position(self, window: Any, position: Point) -> None:
        value = AXValueCreate(kAXValueCGPointType, CGPoint(position.x, position.y))
        AXUIElementSetAttributeValue(window, kAXPositionAttribute, value)

    def write_window_size(self, window: Any, size: Size) -> None:
        value = AXValueCreate(kAXValueCGSizeType, CGSize(size.width, size.height))
        AXUIElementSetAttributeValue(window, kAXSizeAttribute, value)
