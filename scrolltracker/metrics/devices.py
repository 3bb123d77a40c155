"""Device classification from user agent and viewport size."""

import enum
import re

MOBILE_UA = re.compile(r"android|webos|iphone|ipad|ipod|blackberry|iemobile|opera mini", re.I)
TABLET_UA = re.compile(r"ipad|android(?!.*mobile)", re.I)

TABLET_VIEWPORT_MIN = 768
TABLET_VIEWPORT_MAX = 1024


class DeviceType(str, enum.Enum):
    """Device class shown on the dashboard."""

    DESKTOP = "Desktop"
    MOBILE = "Mobile"
    TABLET = "Tablet"
    UNKNOWN = "Unknown"


def _tablet_sized(width: int, height: int) -> bool:
    return (
        TABLET_VIEWPORT_MIN <= width <= TABLET_VIEWPORT_MAX
        and TABLET_VIEWPORT_MIN <= height <= TABLET_VIEWPORT_MAX
    )


def classify_device(
    ua: str | None,
    width: int | None = None,
    height: int | None = None,
) -> DeviceType:
    """
    Classify a device from its user agent string and viewport size.

    Tablet wins over mobile: an iPad UA (or Android without "mobile") is a
    tablet, as is any UA whose viewport is tablet-sized on both axes.

    Args:
        ua: User agent string, may be empty
        width: Viewport width in CSS pixels
        height: Viewport height in CSS pixels

    Returns:
        DeviceType, UNKNOWN when no user agent was reported
    """
    if not ua:
        return DeviceType.UNKNOWN

    if TABLET_UA.search(ua) or _tablet_sized(width or 0, height or 0):
        return DeviceType.TABLET
    if MOBILE_UA.search(ua):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP
