"""State machine for the court booking flow.

This module defines the BookingStateMachine that governs the valid
transitions of one booking attempt. It uses python-statemachine to enforce
state transition rules.

States are organized into logical groups:
- Entry: start (initial)
- Site steps: site_ready, date_selected, slot_verified
- Suspension: awaiting_verification (waiting for the SMS code)
- Terminal: completed, failed (final states)
"""

from statemachine import State as SMState
from statemachine import StateMachine


class BookingStateMachine(StateMachine):
    """State machine for one booking attempt.

    Attributes:
        step: Counter that increments on each state transition.

    States:
        start: Nothing done yet.
        site_ready: Logged in and on the court's reservation page.
        date_selected: The requested day is selected in the date picker.
        slot_verified: The requested time is offered on that day.
        awaiting_verification: Code requested; the page is retained until
            the caller submits the code.
        completed: The site confirmed the booking (final).
        failed: A step failed or the outcome is unknown (final).
    """

    # Entry state
    start = SMState(initial=True)

    # Site steps
    site_ready = SMState()
    date_selected = SMState()
    slot_verified = SMState()

    # Suspension point
    awaiting_verification = SMState()

    # Terminal states
    completed = SMState(final=True)
    failed = SMState(final=True)

    open_site = start.to(site_ready)
    select_date = site_ready.to(date_selected)
    verify_slot = date_selected.to(slot_verified)
    request_code = slot_verified.to(awaiting_verification)
    confirm = awaiting_verification.to(completed)

    fail = (
        start.to(failed)
        | site_ready.to(failed)
        | date_selected.to(failed)
        | slot_verified.to(failed)
        | awaiting_verification.to(failed)
    )

    def __init__(self) -> None:
        """Initialize the state machine with a step counter."""
        self.step: int = 0
        super().__init__()

    @property
    def is_awaiting_verification(self) -> bool:
        """True while the flow is suspended on the verification code."""
        return self.current_state == self.awaiting_verification

    def after_transition(self, event: str, source: SMState, target: SMState) -> None:
        """Callback invoked after any state transition.

        Increments the step counter to track progress through the flow.

        Args:
            event: The event that triggered this state change.
            source: The state we're transitioning from.
            target: The state we're transitioning to.
        """
        self.step += 1
