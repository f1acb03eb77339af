# herbaltrace/constants/status_badges.py

from typing import Dict, Optional

DEFAULT_BADGE = {"variant": "secondary", "color": "gray"}

STATUS_BADGES: Dict[str, Dict[str, str]] = {
    # conservation
    "common": {"variant": "default", "color": "green"},
    "vulnerable": {"variant": "outline", "color": "yellow"},
    "endangered": {"variant": "destructive", "color": "red"},
    "critical": {"variant": "destructive", "color": "dark-red"},
    "critically_endangered": {"variant": "destructive", "color": "dark-red"},
    # quality grades / condition
    "excellent": {"variant": "default", "color": "green"},
    "good": {"variant": "default", "color": "light-green"},
    "fair": {"variant": "outline", "color": "yellow"},
    "fresh": {"variant": "default", "color": "green"},
    "dry": {"variant": "secondary", "color": "blue"},
    # workflow
    "completed": {"variant": "default", "color": "green"},
    "approved": {"variant": "default", "color": "green"},
    "verified": {"variant": "default", "color": "green"},
    "pending": {"variant": "secondary", "color": "gray"},
    "failed": {"variant": "destructive", "color": "red"},
}


def badge_for(status: Optional[str]) -> Dict[str, str]:
    status = status or ""
    cfg = STATUS_BADGES.get(status, DEFAULT_BADGE)
    return {
        "label": status.replace("_", " ", 1).upper(),
        "variant": cfg["variant"],
        "color": cfg["color"],
    }
