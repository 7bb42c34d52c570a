"""Unit tests for paging bounds and list search patterns."""

import pytest


class TestPageBounds:
    @pytest.mark.parametrize(
        "page,limit,expected",
        [
            (2, 25, (2, 25)),
            (-3, 25, (0, 25)),
            (None, None, (0, 1)),
            (0, 0, (0, 1)),
            (1, 10_000, (1, 100)),
        ],
    )
    def test_clamping(self, page, limit, expected):
        from idsadmin.pagination import page_bounds

        assert page_bounds(page, limit) == expected


class TestSearchPattern:
    @pytest.mark.parametrize(
        "search,expected",
        [
            ("portal", "%portal%"),
            ("  portal ", "%portal%"),
            ("web_app", "%web\\_app%"),
            ("100%", "%100\\%%"),
            ("a\\b", "%a\\\\b%"),
        ],
    )
    def test_wildcards_are_escaped(self, search, expected):
        from idsadmin.pagination import contains

        assert contains(search) == expected


class TestPaginate:
    @pytest.mark.asyncio
    async def test_echoes_clamped_page(self, configuration_context):
        from idsadmin.idp.schemas import ResourceCreateRequest
        from idsadmin.idp.service import ApiResourceService

        service = ApiResourceService(configuration_context)
        for name in ["billing-api", "orders-api"]:
            await service.create(ResourceCreateRequest(name=name))

        result = await service.list(page=-3, limit=1)
        assert result["page"] == 0
        assert result["total"] == 2
        assert [item.name for item in result["items"]] == ["billing-api"]
