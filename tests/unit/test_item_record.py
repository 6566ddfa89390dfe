"""Unit tests for the ItemRecord entity and its narrow updates."""
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sellwizard.domain.entities.item_record import (
    ExternalListingUpdate,
    ItemRecord,
    OptimisationUpdate,
    PriceUpdate,
)
from sellwizard.domain.enums.entry_method import EntryMethod, SourceType
from sellwizard.domain.events.domain_events import (
    ItemCreatedEvent,
    ListingOptimisedEvent,
    PhotoEditDetectedEvent,
    PriceAcceptedEvent,
)
from sellwizard.domain.value_objects.item_draft import ItemDraft

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_item(**draft_fields) -> ItemRecord:
    draft = ItemDraft(condition="Very good", **draft_fields)
    return ItemRecord.create_from_draft(
        owner_id=uuid4(),
        draft=draft,
        entry_method=EntryMethod.MANUAL,
        photo_urls=["https://cdn.test/a.jpg", "https://cdn.test/b.jpg"],
    )


class TestCreateFromDraft:
    def test_first_photo_is_primary(self) -> None:
        item = _make_item(title="Denim jacket")
        assert item.primary_photo_url == "https://cdn.test/a.jpg"
        assert item.photo_urls == ["https://cdn.test/a.jpg", "https://cdn.test/b.jpg"]

    def test_blank_fields_become_none(self) -> None:
        item = _make_item(title="Denim jacket", brand="  ")
        assert item.brand is None
        assert item.condition == "Very good"

    def test_default_title_depends_on_entry_method(self) -> None:
        draft = ItemDraft(condition="Good")
        url_item = ItemRecord.create_from_draft(
            owner_id=uuid4(), draft=draft, entry_method=EntryMethod.URL, photo_urls=[]
        )
        manual_item = ItemRecord.create_from_draft(
            owner_id=uuid4(), draft=draft, entry_method=EntryMethod.MANUAL, photo_urls=[]
        )
        assert url_item.title == "Imported item"
        assert url_item.source_type is SourceType.URL_IMPORT
        assert manual_item.title == "New item"
        assert manual_item.primary_photo_url is None

    def test_source_url_kept_only_for_url_entry(self) -> None:
        item = _make_item(title="Jacket", source_url="https://www.vinted.co.uk/items/1")
        assert item.source_url is None

    def test_emits_created_event(self) -> None:
        item = _make_item(title="Denim jacket")
        events = item.collect_events()

        assert len(events) == 1
        assert isinstance(events[0], ItemCreatedEvent)
        assert events[0].photo_count == 2
        assert item.collect_events() == []


class TestNarrowUpdates:
    def test_price_update_sets_only_price_columns(self) -> None:
        update = PriceUpdate(
            current_price=Decimal("20.00"),
            recommended_price=Decimal("24.00"),
            last_price_check_at=NOW,
            custom=True,
        )
        assert update.fields() == {
            "current_price": Decimal("20.00"),
            "recommended_price": Decimal("24.00"),
            "last_price_check_at": NOW,
        }

    def test_price_update_without_recommendation_leaves_it(self) -> None:
        item = _make_item(title="Jacket")
        item.recommended_price = Decimal("30.00")
        item.apply(PriceUpdate(current_price=Decimal("22.00"), last_price_check_at=NOW, custom=True))

        assert item.current_price == Decimal("22.00")
        assert item.recommended_price == Decimal("30.00")

    def test_apply_emits_matching_event(self) -> None:
        item = _make_item(title="Jacket")
        item.collect_events()

        item.apply(PriceUpdate(current_price=Decimal("20"), last_price_check_at=NOW))
        item.apply(
            OptimisationUpdate(
                optimised_title="Better title",
                optimised_description="Better description",
                health_score=72,
                last_optimised_at=NOW,
            )
        )
        item.apply(ExternalListingUpdate(external_listing_url="https://www.vinted.co.uk/items/9"))

        events = item.collect_events()
        assert [type(e) for e in events] == [PriceAcceptedEvent, ListingOptimisedEvent]
        assert item.health_score == 72
        assert item.external_listing_url == "https://www.vinted.co.uk/items/9"

    def test_optimisation_update_does_not_touch_price(self) -> None:
        item = _make_item(title="Jacket", current_price=Decimal("15"))
        item.apply(
            OptimisationUpdate(
                optimised_title="T",
                optimised_description="D",
                health_score=50,
                last_optimised_at=NOW,
            )
        )
        assert item.current_price == Decimal("15")


class TestReadHelpers:
    def test_best_fields_prefer_optimised(self) -> None:
        item = _make_item(title="Jacket", description="Raw")
        assert item.best_title == "Jacket"
        assert item.best_description == "Raw"

        item.optimised_title = "Levi's Jacket"
        item.optimised_description = "Optimised"
        assert item.best_title == "Levi's Jacket"
        assert item.best_description == "Optimised"

    def test_all_photos_primary_first_without_duplicates(self) -> None:
        item = _make_item(title="Jacket")
        item.primary_photo_url = "https://cdn.test/b.jpg"
        assert item.all_photos() == ["https://cdn.test/b.jpg", "https://cdn.test/a.jpg"]

    def test_record_photo_edit(self) -> None:
        item = _make_item(title="Jacket")
        item.collect_events()
        item.record_photo_edit(NOW)

        assert item.last_photo_edit_at == NOW
        assert isinstance(item.collect_events()[0], PhotoEditDetectedEvent)

    def test_ownership(self) -> None:
        item = _make_item(title="Jacket")
        assert item.is_owned_by(item.owner_id) is True
        assert item.is_owned_by(uuid4()) is False
