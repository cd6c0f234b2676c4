"""
Email personas - the named coordinators trade correspondence is sent as.

Personas are not selectable by users. The persona for an owner is a pure
function of the owner's id: FNV-1a (32-bit) over the UTF-8 bytes of the id,
reduced modulo the pool size. Trades therefore always hear from the same
person for a given owner, while owners are spread across the pool.
"""

from dataclasses import dataclass
from typing import Tuple

from ..constants import PERSONA_EMAIL_DOMAIN

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
_MASK_32 = 0xFFFFFFFF


@dataclass(frozen=True)
class EmailPersona:
    display_name: str
    role_title: str
    local_part: str
    domain: str = PERSONA_EMAIL_DOMAIN

    @property
    def address(self) -> str:
        return f"{self.local_part}@{self.domain}"

    @property
    def signature(self) -> str:
        return f"{self.display_name}\n{self.role_title}, Casa\n{self.address}"

    @property
    def signature_html(self) -> str:
        return (
            '<div style="border-top: 1px solid #E5E5E5; padding-top: 16px; margin-top: 24px;">'
            f'<p style="margin: 0; font-weight: 600;">{self.display_name}</p>'
            f'<p style="margin: 2px 0; font-size: 13px;">{self.role_title}, Casa</p>'
            f'<p style="margin: 2px 0; font-size: 13px;">{self.address}</p>'
            "</div>"
        )


# Order matters: the hash indexes into this tuple.
PERSONAS: Tuple[EmailPersona, ...] = (
    EmailPersona("Sarah Mitchell", "Property Coordinator", "sarah"),
    EmailPersona("James Cooper", "Maintenance Coordinator", "james"),
    EmailPersona("Emma Taylor", "Property Coordinator", "emma"),
    EmailPersona("Tom Gallagher", "Maintenance Coordinator", "tom"),
)


def fnv1a_32(value: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 encoding of ``value``."""
    h = FNV_OFFSET_BASIS
    for byte in value.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & _MASK_32
    return h


def persona_for_actor(actor_id: str, pool: Tuple[EmailPersona, ...] = PERSONAS) -> EmailPersona:
    if not pool:
        raise ValueError("Persona pool is empty")
    return pool[fnv1a_32(actor_id) % len(pool)]


_SUBJECT_FORMATS = {
    "quote_request": "Quote Request: {job} — {address}",
    "negotiation": "Re: Quote for {job} — {address}",
    "followup": "Following Up: {job} — {address}",
    "work_order": "Work Order: {job} — {address}",
}


def trade_subject(kind: str, job_title: str, property_address: str) -> str:
    """Subject line for persona mail to a trade."""
    template = _SUBJECT_FORMATS.get(kind)
    if template is None:
        raise ValueError(f"Unknown trade subject kind: {kind}")
    return template.format(job=job_title, address=property_address)
