"""Response texts for the simulated patient.

The patient always addresses the user as "Doctor".
"""

from __future__ import annotations


def address_remembered(address: str) -> str:
    """Acknowledge an address given to remember."""
    return f"Okay Doctor, {address}, I'll remember it."


def ask_for_address() -> str:
    """Ask for the address when none was recognized."""
    return "Sure Doctor, what's the address?"


def address_recalled(address: str) -> str:
    """Repeat the remembered address."""
    return f"I think it was {address}."


def no_address_given() -> str:
    """No address was ever given."""
    return "I don't think you told me an address Doctor."


def not_understood() -> str:
    """Knowledge base had no answer."""
    return "Sorry Doctor, I'm not sure what you mean."
