"""Intercom admin ID <-> agent display name mapping."""

from typing import Optional
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

UNASSIGNED = "Unassigned"
UNKNOWN = "Unknown"

# Intercom admin ID -> (display name, full name)
INTERCOM_ADMINS = {
    "6465865": ("Aneela", "Aneela Karim"),
    "9123839": ("Carl", "Carl James Salamida"),
    "4310906": ("Chloe", "Chloe Helton"),
    "8815155": ("Christian", "Christian Falcon"),
    "5326930": ("Jonathan", "Jonathan Vicenta"),
    "7023191": ("Joyce", "Joyce Vicenta"),
    "1755792": ("Mark", "Mark Helton"),
}

# Either name form -> admin ID
_ADMIN_IDS_BY_NAME = {
    name.lower(): admin_id
    for admin_id, names in INTERCOM_ADMINS.items()
    for name in names
}


def map_assignee(admin_id: Optional[str]) -> str:
    """Display name for an Intercom admin assignee.

    None/empty means nobody is assigned ("Unassigned"); an ID missing from the
    table is someone we don't recognize ("Unknown").
    """
    if admin_id is None or str(admin_id).strip() == "":
        return UNASSIGNED

    names = INTERCOM_ADMINS.get(str(admin_id).strip())
    if names is None:
        logger.warning("Unmapped Intercom admin ID", admin_id=str(admin_id))
        return UNKNOWN
    return names[0]


def admin_id_for(agent_name: Optional[str]) -> Optional[str]:
    """Intercom admin ID for a short or full agent name."""
    if not agent_name:
        return None
    return _ADMIN_IDS_BY_NAME.get(agent_name.strip().lower())
