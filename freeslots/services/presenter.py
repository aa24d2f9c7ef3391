"""
Turns computed slots into text that can be sent to a contact.
"""

from typing import Optional, Sequence

from ..domain.models import AvailabilitySlot


class SchedulingMessagePresenter:
    """Plain string templating over availability slots."""

    NO_AVAILABILITY_TEMPLATE = (
        "{greeting} I'd love to schedule a coffee chat with you. Unfortunately, "
        "I don't have any available slots in the next week. "
        "Could you let me know what works for you?"
    )
    AVAILABILITY_TEMPLATE = (
        "{greeting} I'd love to schedule a coffee chat with you. "
        "I have availability on: {slots}. Let me know what works best for you!"
    )

    def availability_message(
        self,
        slots: Sequence[AvailabilitySlot],
        contact_name: Optional[str] = None,
    ) -> str:
        """
        Build an outreach message offering the given slots.

        Args:
            slots: Slots to offer, in the order they should be listed
            contact_name: Optional first name used in the greeting

        Returns:
            Message text
        """
        greeting = f"Hi {contact_name}!" if contact_name else "Hi!"

        if not slots:
            return self.NO_AVAILABILITY_TEMPLATE.format(greeting=greeting)

        formatted = ", ".join(self.format_slot_start(slot) for slot in slots)
        return self.AVAILABILITY_TEMPLATE.format(greeting=greeting, slots=formatted)

    @staticmethod
    def format_slot_start(slot: AvailabilitySlot) -> str:
        """Format as e.g. "Monday, Nov 25 at 9:00 AM"."""
        return f"{slot.start.format('dddd, MMM D')} at {slot.start.format('h:mm A')}"

    @staticmethod
    def format_duration(minutes: int) -> str:
        """Format minutes as "45m", "1h" or "1h 30m"."""
        if minutes < 60:
            return f"{minutes}m"
        hours, remaining = divmod(minutes, 60)
        return f"{hours}h {remaining}m" if remaining else f"{hours}h"

    @staticmethod
    def availability_status(slots: Sequence[AvailabilitySlot]) -> str:
        """
        Summarise a day's slots: "busy", "limited" (under an hour) or "available".
        """
        total_minutes = sum(slot.duration_minutes for slot in slots)
        if total_minutes == 0:
            return "busy"
        if total_minutes < 60:
            return "limited"
        return "available"
