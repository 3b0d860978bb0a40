"""San Francisco Rec & Park (rec.us) site definition for courtbook.

Everything the automation knows about the target site's layout lives here.
Selectors use Playwright selector syntax.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SiteSelectors:
    """Selectors for the elements the booking script touches."""

    login_link: str
    email_input: str
    password_input: str
    login_submit: str
    court_page_marker: str
    date_input: str
    date_picker: str
    next_month: str
    slots_loaded: str
    slot_panel: str
    duration_button: str
    duration_loaded: str
    duration_option: str
    participant_button: str
    participant_option: str
    book_button: str
    send_code: str
    verification_input: str
    confirm_button: str
    success_marker: str


@dataclass(frozen=True)
class SiteConfig:
    """Configuration for a reservation site."""

    name: str
    entry_url: str
    selectors: SiteSelectors
    courts: list[str] = field(default_factory=list)
    already_reserved_text: str = ""
    diagnostic_url: str = "https://example.com"

    def court_link(self, court: str) -> str:
        """Selector for the link that opens a court's reservation page."""
        return f"text={court} >> nth=0"

    def slot_button(self, normalized_time: str) -> str:
        """Selector for a rendered time-slot button."""
        return f"text={normalized_time} >> nth=0"


def sf_rec_park() -> SiteConfig:
    """Site definition for rec.us/sfrecpark."""
    return SiteConfig(
        name="SF Rec & Park",
        entry_url="https://www.rec.us/sfrecpark",
        selectors=SiteSelectors(
            login_link="text=Log In",
            email_input='input[id="email"]',
            password_input='input[id="password"]',
            login_submit="text=log in & continue",
            court_page_marker="text=Court Reservations",
            date_input="input >> nth=0",
            date_picker=".react-datepicker",
            next_month='role=button[name="right"]',
            slots_loaded=r"text=/(\d:)|(No free)/",
            # The slot times are siblings of the "Tennis" label.
            slot_panel="text=Tennis >> nth=0 >> xpath=..",
            duration_button=(
                "xpath=//label[text()='Duration']/following-sibling::button"
            ),
            duration_loaded="text=2 hours",
            duration_option='div[role="option"]:not([aria-disabled="true"]) >> nth=0',
            participant_button="text=Select participant",
            participant_option="text=Account Owner",
            book_button="button.max-w-max",
            send_code="text=Send Code",
            verification_input='input[id="totp"]',
            confirm_button="text=Confirm >> nth=-1",
            success_marker="text=You're all set!",
        ),
        courts=[
            "Alice Marble",
            "DuPont",
            "McLaren",
            "Moscone",
            "Hamilton",
            "Balboa",
        ],
        already_reserved_text="Court already reserved at this time",
    )
