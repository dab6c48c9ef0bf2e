# spinbot/services/tickets.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Entitlement:
    tickets_total: int
    tickets_used: int
    tickets_remaining: int


def tickets_for(wagered_amount: int, ticket_unit: int) -> int:
    if ticket_unit <= 0:
        raise ValueError(f"ticket_unit must be positive, got {ticket_unit}")
    return max(0, int(wagered_amount)) // ticket_unit


def compute_entitlement(wagered_amount: int, tickets_used: int, ticket_unit: int) -> Entitlement:
    """
    tickets_total = floor(wagered / unit); remaining = max(0, total - used).

    Stale wager data can report fewer tickets than were already spent; that clamps
    remaining to 0 instead of raising.
    """
    total = tickets_for(wagered_amount, ticket_unit)
    used = max(0, int(tickets_used))
    return Entitlement(
        tickets_total=total,
        tickets_used=used,
        tickets_remaining=max(0, total - used),
    )
