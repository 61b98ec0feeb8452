"""Built-in case types and jurisdictions, used when the remote catalog is empty."""

from __future__ import annotations

from typing import Mapping, Sequence

DEFAULT_CASE_TYPES: Mapping[str, str] = {
    "civil_revision": "Civil Revision Petition",
    "constitutional_writ": "Constitutional Writ",
    "criminal_bail": "Bail Application",
}

JURISDICTIONS: Sequence[str] = (
    "Lahore High Court",
    "Sindh High Court",
    "Islamabad High Court",
    "Peshawar High Court",
    "Supreme Court",
)
