"""
Tests for the scheduling message presenter.
"""

import pendulum
import pytest

from freeslots.domain.models import AvailabilitySlot
from freeslots.services.presenter import SchedulingMessagePresenter

TZ = "America/New_York"


def _slot(day: str, start: str, end: str) -> AvailabilitySlot:
    return AvailabilitySlot.between(
        pendulum.parse(f"{day} {start}", tz=TZ),
        pendulum.parse(f"{day} {end}", tz=TZ),
    )


class TestSchedulingMessagePresenter:
    """Tests for SchedulingMessagePresenter."""

    def test_message_lists_slot_starts(self):
        presenter = SchedulingMessagePresenter()
        slots = [
            _slot("2024-11-25", "09:00", "10:00"),
            _slot("2024-11-26", "14:30", "17:00"),
        ]

        message = presenter.availability_message(slots)

        assert message == (
            "Hi! I'd love to schedule a coffee chat with you. "
            "I have availability on: Monday, Nov 25 at 9:00 AM, Tuesday, Nov 26 at 2:30 PM. "
            "Let me know what works best for you!"
        )

    def test_message_without_slots(self):
        message = SchedulingMessagePresenter().availability_message([])

        assert message.startswith("Hi! I'd love to schedule a coffee chat with you.")
        assert "don't have any available slots in the next week" in message
        assert message.endswith("Could you let me know what works for you?")

    def test_message_greets_contact_by_name(self):
        message = SchedulingMessagePresenter().availability_message(
            [_slot("2024-11-25", "09:00", "10:00")],
            contact_name="Sam",
        )

        assert message.startswith("Hi Sam! ")

    @pytest.mark.parametrize(
        "minutes, expected",
        [(0, "0m"), (45, "45m"), (60, "1h"), (90, "1h 30m"), (480, "8h")],
    )
    def test_format_duration(self, minutes, expected):
        assert SchedulingMessagePresenter.format_duration(minutes) == expected

    def test_availability_status(self):
        assert SchedulingMessagePresenter.availability_status([]) == "busy"
        assert SchedulingMessagePresenter.availability_status([_slot("2024-11-25", "09:00", "09:45")]) == "limited"
        assert SchedulingMessagePresenter.availability_status(
            [_slot("2024-11-25", "09:00", "09:30"), _slot("2024-11-25", "11:00", "11:30")]
        ) == "available"
