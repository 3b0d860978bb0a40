"""Site definitions for the reservation properties courtbook drives."""

from courtbook.services.sfrec import SiteConfig, SiteSelectors, sf_rec_park

__all__ = [
    "SiteConfig",
    "SiteSelectors",
    "sf_rec_park",
]
