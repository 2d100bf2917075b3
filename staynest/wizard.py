"""
Four-step create/edit listing form as an explicit state machine.

BASICS -> PRICING -> DETAILS -> MEDIA; `next()` is guarded by the current
step's validation and `submit()` is only accepted from MEDIA. `save()` sends
the payload through ListingsClient (POST, or PUT in edit mode).
"""

from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Dict, List, Optional

from staynest.client import ListingsClient
from staynest.engine import parse_bound
from staynest.models import Listing

AMENITIES = ("wifi", "ac", "parking", "laundry", "kitchen", "balcony", "security24", "gatekeeper")


class WizardStep(IntEnum):
    BASICS = 1
    PRICING = 2
    DETAILS = 3
    MEDIA = 4


STEP_ERRORS = {
    WizardStep.BASICS:  "Step 1: Please fill all required fields",
    WizardStep.PRICING: "Step 2: Please enter rent and deposit",
    WizardStep.DETAILS: "Step 3: Please fill all required fields",
}


class IncompleteDraftError(ValueError):
    def __init__(self, step: WizardStep, message: str):
        super().__init__(message)
        self.step = step


@dataclass
class ListingDraft:
    # basics
    title: str = ""
    description: str = ""
    address: str = ""
    city: str = ""
    type: str = ""
    # pricing (kept as typed)
    rent: str = ""
    deposit: str = ""
    utilities: str = ""
    # details
    gender_allowed: str = "both"
    rooms: str = "1"
    capacity: str = "1"
    furnished: str = "semi"
    amenities: Dict[str, bool] = field(default_factory=lambda: dict.fromkeys(AMENITIES, False))
    # media
    photo_url: str = ""
    additional_photos: List[str] = field(default_factory=lambda: ["", "", ""])


def _filled(value: str) -> bool:
    return bool(value and value.strip())


def step_error(draft: ListingDraft, step: WizardStep) -> Optional[str]:
    if step is WizardStep.BASICS:
        ok = all(_filled(v) for v in (draft.title, draft.description, draft.address, draft.city, draft.type))
    elif step is WizardStep.PRICING:
        ok = _filled(draft.rent) and _filled(draft.deposit)
    elif step is WizardStep.DETAILS:
        ok = _filled(draft.rooms) and _filled(draft.capacity)
    else:
        ok = True
    return None if ok else STEP_ERRORS[step]


def _number(value: str) -> float:
    n = parse_bound(value)
    return 0 if n is None else n


class ListingWizard:
    def __init__(self, draft: Optional[ListingDraft] = None, listing_id: Optional[str] = None):
        self.draft = draft or ListingDraft()
        self.listing_id = listing_id
        self.step = WizardStep.BASICS
        self.error: Optional[str] = None

    @property
    def edit_mode(self) -> bool:
        return self.listing_id is not None

    @classmethod
    def from_listing(cls, listing: Listing, description: str = "") -> "ListingWizard":
        draft = ListingDraft(
            title=listing.title,
            description=description,
            address=listing.address,
            city=listing.city or "",
            type=listing.type or "",
            rent=str(listing.rent) if listing.rent else "",
            deposit="" if listing.deposit is None else str(listing.deposit),
            gender_allowed=listing.gender_allowed or "both",
            rooms=str(listing.number_of_rooms or 1),
            capacity=str(listing.capacity or 1),
            furnished=listing.furnishing or "semi",
        )
        return cls(draft, listing_id=listing.id)

    def update(self, **values: Any) -> None:
        known = {f.name for f in fields(ListingDraft)}
        unknown = set(values) - known
        if unknown:
            raise TypeError(f"unknown draft fields: {sorted(unknown)}")
        for name, value in values.items():
            setattr(self.draft, name, value)

    def toggle_amenity(self, amenity: str) -> None:
        if amenity not in self.draft.amenities:
            raise KeyError(amenity)
        self.draft.amenities[amenity] = not self.draft.amenities[amenity]

    def validate(self) -> bool:
        self.error = step_error(self.draft, self.step)
        return self.error is None

    def next(self) -> WizardStep:
        if self.validate() and self.step < WizardStep.MEDIA:
            self.step = WizardStep(self.step + 1)
        return self.step

    def previous(self) -> WizardStep:
        self.error = None
        self.step = WizardStep(max(self.step - 1, WizardStep.BASICS))
        return self.step

    def submit(self) -> Dict[str, Any]:
        """Payload for create/update; raises IncompleteDraftError if any step is invalid."""
        if self.step is not WizardStep.MEDIA:
            raise IncompleteDraftError(self.step, f"Finish step {int(self.step)} of 4 first")
        for step in WizardStep:
            message = step_error(self.draft, step)
            if message:
                self.error = message
                raise IncompleteDraftError(step, message)

        d = self.draft
        photos = [p.strip() for p in [d.photo_url, *d.additional_photos] if _filled(p)]
        return {
            "title": d.title,
            "description": d.description,
            "address": d.address,
            "city": d.city,
            "type": d.type,
            "rent": _number(d.rent),
            "deposit": _number(d.deposit),
            "utilities": _number(d.utilities) if _filled(d.utilities) else 0,
            "genderAllowed": d.gender_allowed,
            "rooms": int(_number(d.rooms)),
            "capacity": int(_number(d.capacity)),
            "furnished": d.furnished,
            "facilities": {k: True for k, on in d.amenities.items() if on},
            "photos": photos,
        }

    def save(self, client: ListingsClient, token: str) -> Listing:
        """Submit the draft: creates a listing, or updates it in edit mode."""
        payload = self.submit()
        if self.edit_mode:
            return client.update(self.listing_id, payload, token)
        listing = client.create(payload, token)
        self.listing_id = listing.id
        return listing
