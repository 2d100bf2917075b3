import pytest

from staynest.models import Listing
from staynest.wizard import STEP_ERRORS, IncompleteDraftError, ListingWizard, WizardStep


class RecordingClient:
    def __init__(self):
        self.calls = []

    def create(self, payload, token):
        self.calls.append(("create", None, payload, token))
        return Listing(id="new1", title=payload["title"])

    def update(self, listing_id, payload, token):
        self.calls.append(("update", listing_id, payload, token))
        return Listing(id=listing_id, title=payload["title"])


def fill_basics(wizard):
    wizard.update(title="Premium Mess", description="Near campus", address="Road 27",
                  city="Dhaka", type="mess")


def completed_wizard():
    wizard = ListingWizard()
    fill_basics(wizard)
    wizard.update(rent="8000", deposit="16000")
    wizard.step = WizardStep.MEDIA
    return wizard


def test_next_is_blocked_until_step_validates():
    wizard = ListingWizard()
    assert wizard.next() is WizardStep.BASICS
    assert wizard.error == STEP_ERRORS[WizardStep.BASICS]

    fill_basics(wizard)
    assert wizard.next() is WizardStep.PRICING
    assert wizard.error is None

    wizard.update(rent="8000")
    assert wizard.next() is WizardStep.PRICING
    assert wizard.error == "Step 2: Please enter rent and deposit"


def test_previous_never_goes_below_first_step_and_clears_error():
    wizard = ListingWizard()
    wizard.next()
    assert wizard.previous() is WizardStep.BASICS
    assert wizard.error is None


def test_full_walkthrough_builds_payload():
    wizard = ListingWizard()
    fill_basics(wizard)
    wizard.next()
    wizard.update(rent="8000", deposit="16000")
    wizard.next()
    wizard.update(rooms="4", capacity="8", gender_allowed="male")
    wizard.toggle_amenity("wifi")
    wizard.toggle_amenity("ac")
    wizard.toggle_amenity("ac")
    assert wizard.next() is WizardStep.MEDIA
    wizard.update(photo_url=" https://img.example/1.jpg ", additional_photos=["", "https://img.example/2.jpg", " "])

    payload = wizard.submit()

    assert payload["rent"] == 8000
    assert payload["deposit"] == 16000
    assert payload["utilities"] == 0
    assert payload["rooms"] == 4
    assert payload["capacity"] == 8
    assert payload["genderAllowed"] == "male"
    assert payload["facilities"] == {"wifi": True}
    assert payload["photos"] == ["https://img.example/1.jpg", "https://img.example/2.jpg"]


def test_next_stays_on_last_step():
    wizard = ListingWizard()
    wizard.step = WizardStep.MEDIA
    assert wizard.next() is WizardStep.MEDIA


def test_submit_before_last_step_is_rejected():
    wizard = ListingWizard()
    fill_basics(wizard)
    with pytest.raises(IncompleteDraftError) as exc:
        wizard.submit()
    assert exc.value.step is WizardStep.BASICS


def test_submit_revalidates_every_step():
    wizard = ListingWizard()
    wizard.step = WizardStep.MEDIA
    fill_basics(wizard)
    with pytest.raises(IncompleteDraftError) as exc:
        wizard.submit()
    assert exc.value.step is WizardStep.PRICING
    assert wizard.error == STEP_ERRORS[WizardStep.PRICING]


def test_unknown_fields_and_amenities_are_rejected():
    wizard = ListingWizard()
    with pytest.raises(TypeError):
        wizard.update(colour="blue")
    with pytest.raises(KeyError):
        wizard.toggle_amenity("pool")


def test_edit_mode_prefills_from_listing(make_listing):
    listing = make_listing("l9", rent=7000, deposit=14000, number_of_rooms=3, capacity=6,
                           furnishing="full", gender_allowed="female")
    wizard = ListingWizard.from_listing(listing, description="Quiet")

    assert wizard.edit_mode is True
    assert wizard.listing_id == "l9"
    assert wizard.draft.rent == "7000"
    assert wizard.draft.rooms == "3"
    assert wizard.draft.furnished == "full"
    assert wizard.next() is WizardStep.PRICING


def test_save_creates_then_switches_to_edit_mode():
    client = RecordingClient()
    wizard = completed_wizard()

    listing = wizard.save(client, "tok")

    assert listing.id == "new1"
    assert wizard.edit_mode is True
    assert wizard.listing_id == "new1"
    kind, listing_id, payload, token = client.calls[0]
    assert (kind, listing_id, token) == ("create", None, "tok")
    assert payload["rent"] == 8000


def test_save_in_edit_mode_updates(make_listing):
    client = RecordingClient()
    wizard = ListingWizard.from_listing(make_listing("l9", deposit=1000), description="Quiet")
    wizard.step = WizardStep.MEDIA

    assert wizard.save(client, "tok").id == "l9"
    assert [c[:2] for c in client.calls] == [("update", "l9")]


def test_save_incomplete_draft_sends_nothing():
    client = RecordingClient()
    with pytest.raises(IncompleteDraftError):
        ListingWizard().save(client, "tok")
    assert client.calls == []
