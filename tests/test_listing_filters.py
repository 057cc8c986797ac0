"""
Tests for the public listing query: filter parsing, approval visibility,
AND-combined filters, sorting and pagination.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient
from pydantic import ValidationError as PydanticValidationError

from zameenhub.models.profile import Profile, ApprovalStatus
from zameenhub.models.property import PropertyType, FurnishingStatus
from zameenhub.repositories.property import ListingSort
from zameenhub.schemas.property import ListingFilterParams
from zameenhub.services.property import PropertyService
from tests.conftest import PropertyFactory, hours_ago


class TestListingFilterParams:
    """Parsing query parameters into filters."""

    def test_defaults(self):
        params = ListingFilterParams.model_validate({})

        assert params.property_type is None
        assert params.sort_by == ListingSort.NEWEST
        assert params.page == 1
        assert params.page_size is None

    def test_camel_case_names(self):
        params = ListingFilterParams.model_validate({
            "propertyType": "apartment",
            "minPrice": "5000000",
            "maxPrice": "9000000",
            "bedrooms": "2",
            "sortBy": "price_desc",
            "pageSize": "5",
        })

        assert params.property_type == PropertyType.APARTMENT
        assert params.min_price == Decimal("5000000")
        assert params.max_price == Decimal("9000000")
        assert params.min_bedrooms == 2
        assert params.sort_by == ListingSort.PRICE_DESC
        assert params.page_size == 5

    def test_snake_case_names(self):
        params = ListingFilterParams.model_validate({
            "property_type": "plot",
            "min_bedrooms": "1",
            "sort_by": "price_asc",
        })

        assert params.property_type == PropertyType.PLOT
        assert params.min_bedrooms == 1
        assert params.sort_by == ListingSort.PRICE_ASC

    def test_empty_strings_mean_no_filter(self):
        params = ListingFilterParams.model_validate({
            "propertyType": "",
            "city": "  ",
            "minPrice": "",
            "bedrooms": "",
            "furnishing": "",
            "sortBy": "",
            "page": "",
        })

        assert params.property_type is None
        assert params.city is None
        assert params.min_price is None
        assert params.min_bedrooms is None
        assert params.furnishing is None
        assert params.sort_by == ListingSort.NEWEST
        assert params.page == 1

    def test_min_price_above_max_price(self):
        with pytest.raises(PydanticValidationError):
            ListingFilterParams.model_validate({"minPrice": "10", "maxPrice": "5"})

    def test_unknown_sort(self):
        with pytest.raises(PydanticValidationError):
            ListingFilterParams.model_validate({"sortBy": "title"})


@pytest.fixture
async def listings(db_session, test_dealer: Profile):
    """A small market, oldest first in creation order."""
    create = PropertyFactory.create_property
    return {
        "cheap_house": await create(
            db_session, test_dealer.id, title="Cheap House", price=Decimal("4000000"),
            bedrooms=2, city="Lahore", furnishing=FurnishingStatus.UNFURNISHED, created_at=hours_ago(50)
        ),
        "big_house": await create(
            db_session, test_dealer.id, title="Big House", price=Decimal("30000000"),
            bedrooms=5, city="Lahore", furnishing=FurnishingStatus.FURNISHED, created_at=hours_ago(40)
        ),
        "karachi_flat": await create(
            db_session, test_dealer.id, title="Karachi Flat", property_type=PropertyType.APARTMENT,
            price=Decimal("9000000"), bedrooms=3, city="Karachi", created_at=hours_ago(30)
        ),
        "unpriced_plot": await create(
            db_session, test_dealer.id, title="Plot on Request", property_type=PropertyType.PLOT,
            price=None, bedrooms=None, city="Lahore", created_at=hours_ago(20)
        ),
        "pending_house": await create(
            db_session, test_dealer.id, title="Pending House", price=Decimal("5000000"),
            bedrooms=4, city="Lahore", approval_status=ApprovalStatus.PENDING, created_at=hours_ago(10)
        ),
        "rejected_house": await create(
            db_session, test_dealer.id, title="Rejected House", price=Decimal("6000000"),
            bedrooms=4, city="Lahore", approval_status=ApprovalStatus.REJECTED, created_at=hours_ago(5)
        ),
    }


def titles(result) -> list:
    return [p.title for p in result["properties"]]


class TestListingQuery:
    """The listing query as run by PropertyService."""

    @pytest.mark.asyncio
    async def test_only_approved_listings_newest_first(self, property_service: PropertyService, listings):
        result = await property_service.search_properties(ListingFilterParams())

        assert titles(result) == ["Plot on Request", "Karachi Flat", "Big House", "Cheap House"]
        assert result["total"] == 4
        assert result["page_size"] is None
        assert result["total_pages"] == 1

    @pytest.mark.asyncio
    async def test_approval_applies_even_when_other_filters_match(
        self,
        property_service: PropertyService,
        listings
    ):
        params = ListingFilterParams(property_type=PropertyType.HOUSE, min_bedrooms=4)

        result = await property_service.search_properties(params)

        assert titles(result) == ["Big House"]

    @pytest.mark.asyncio
    async def test_filters_are_combined(self, property_service: PropertyService, listings):
        params = ListingFilterParams.model_validate({
            "propertyType": "house",
            "city": "Lahore",
            "minPrice": "1000000",
            "maxPrice": "10000000",
            "bedrooms": "2",
        })

        result = await property_service.search_properties(params)

        assert titles(result) == ["Cheap House"]

    @pytest.mark.asyncio
    async def test_furnishing_filter(self, property_service: PropertyService, listings):
        result = await property_service.search_properties(
            ListingFilterParams(furnishing=FurnishingStatus.FURNISHED)
        )
        assert titles(result) == ["Big House"]

    @pytest.mark.asyncio
    async def test_price_filter_excludes_unpriced(self, property_service: PropertyService, listings):
        result = await property_service.search_properties(ListingFilterParams(max_price=Decimal("100000000")))
        assert "Plot on Request" not in titles(result)

    @pytest.mark.asyncio
    async def test_price_ascending_puts_unpriced_last(self, property_service: PropertyService, listings):
        result = await property_service.search_properties(ListingFilterParams(sort_by=ListingSort.PRICE_ASC))

        assert titles(result) == ["Cheap House", "Karachi Flat", "Big House", "Plot on Request"]

    @pytest.mark.asyncio
    async def test_price_descending_puts_unpriced_last(self, property_service: PropertyService, listings):
        result = await property_service.search_properties(ListingFilterParams(sort_by=ListingSort.PRICE_DESC))

        assert titles(result) == ["Big House", "Karachi Flat", "Cheap House", "Plot on Request"]

    @pytest.mark.asyncio
    async def test_equal_prices_break_ties_by_newest(
        self,
        property_service: PropertyService,
        db_session,
        test_dealer: Profile
    ):
        await PropertyFactory.create_property(
            db_session, test_dealer.id, title="Older", price=Decimal("100"), created_at=hours_ago(3)
        )
        await PropertyFactory.create_property(
            db_session, test_dealer.id, title="Newer", price=Decimal("100"), created_at=hours_ago(1)
        )

        result = await property_service.search_properties(ListingFilterParams(sort_by=ListingSort.PRICE_ASC))

        assert titles(result) == ["Newer", "Older"]

    @pytest.mark.asyncio
    async def test_pagination(self, property_service: PropertyService, listings):
        first = await property_service.search_properties(ListingFilterParams(page=1, page_size=3))
        second = await property_service.search_properties(ListingFilterParams(page=2, page_size=3))

        assert titles(first) == ["Plot on Request", "Karachi Flat", "Big House"]
        assert first["has_next"] is True
        assert first["has_previous"] is False
        assert first["total_pages"] == 2

        assert titles(second) == ["Cheap House"]
        assert second["has_next"] is False
        assert second["has_previous"] is True
        assert second["total"] == 4

    @pytest.mark.asyncio
    async def test_later_page_without_size_uses_default_and_size_is_capped(
        self,
        db_session,
        settings,
        listings
    ):
        service = PropertyService(
            db_session, settings.model_copy(update={"default_page_size": 3, "max_page_size": 2})
        )

        later = await service.search_properties(ListingFilterParams(page=2))
        capped = await service.search_properties(ListingFilterParams(page=1, page_size=50))

        assert later["page_size"] == 2
        assert titles(later) == ["Big House", "Cheap House"]
        assert capped["page_size"] == 2
        assert capped["total_pages"] == 2

    @pytest.mark.asyncio
    async def test_no_matches(self, property_service: PropertyService, listings):
        result = await property_service.search_properties(ListingFilterParams(city="Quetta"))

        assert result["properties"] == []
        assert result["total"] == 0


class TestListingEndpoint:
    """GET /api/v1/properties."""

    @pytest.mark.asyncio
    async def test_browse_with_camel_case_query(self, async_client: AsyncClient, listings):
        response = await async_client.get(
            "/api/v1/properties",
            params={"propertyType": "house", "minPrice": "", "sortBy": "price_asc"}
        )

        assert response.status_code == 200
        data = response.json()
        assert [p["title"] for p in data["properties"]] == ["Cheap House", "Big House"]
        assert data["total"] == 2
        assert data["properties"][0]["price"] == 4000000.0
        assert data["properties"][0]["owner"]["agency_name"] == "Lahore Estates"

    @pytest.mark.asyncio
    async def test_invalid_sort_is_rejected(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/properties", params={"sortBy": "cheapest"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_pending_listing_hidden_from_detail(self, async_client: AsyncClient, listings):
        pending = listings["pending_house"]

        response = await async_client.get(f"/api/v1/properties/{pending.id}")

        assert response.status_code == 404
