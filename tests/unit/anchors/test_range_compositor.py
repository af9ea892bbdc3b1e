"""Tests for combining anchors into episode ranges."""

import pytest

from gbtool.anchors.compositor import anchored_ids, intersect
from gbtool.anchors.parser import AnchorSpec, AnchorType
from gbtool.anchors.resolver import AnchorResolver, AnchorResult
from gbtool.catalog.builder import build_catalog
from gbtool.catalog.models import Catalog


@pytest.fixture
def flat(make_video) -> Catalog:
    """Twenty episodes in a single season, IDs 1 through 20."""
    return build_catalog([make_video(n, f"2018-02-{n:02d} 10:00:00") for n in range(1, 21)])


async def resolve(catalog: Catalog, *anchors: tuple[AnchorType, str]) -> list[AnchorResult]:
    resolver = AnchorResolver(catalog)
    return [
        await resolver.resolve(anchor_type, AnchorSpec(identifier=identifier))
        for anchor_type, identifier in anchors
    ]


class TestFlatRanges:
    """Tests for whole-show ranges."""

    @pytest.mark.asyncio
    async def test_from_through_is_inclusive(self, flat: Catalog) -> None:
        """Test that from E5 through E10 includes both ends."""
        anchors = await resolve(flat, (AnchorType.FROM, "E5"), (AnchorType.THROUGH, "E10"))

        assert intersect(anchors, flat) == set(range(5, 11))

    @pytest.mark.asyncio
    async def test_after_to_is_exclusive(self, flat: Catalog) -> None:
        """Test that after E5 to E10 excludes both ends."""
        anchors = await resolve(flat, (AnchorType.AFTER, "E5"), (AnchorType.TO, "E10"))

        assert intersect(anchors, flat) == set(range(6, 10))

    @pytest.mark.asyncio
    async def test_contradictory_anchors_give_empty_set(self, flat: Catalog) -> None:
        """Test that from E10 to E5 selects nothing."""
        anchors = await resolve(flat, (AnchorType.FROM, "E10"), (AnchorType.TO, "E5"))

        assert intersect(anchors, flat) == set()

    @pytest.mark.asyncio
    async def test_to_first_episode_is_empty(self, flat: Catalog) -> None:
        """Test that nothing precedes the first episode."""
        (anchor,) = await resolve(flat, (AnchorType.TO, "E1"))

        assert anchored_ids(anchor, flat) == set()

    @pytest.mark.asyncio
    async def test_after_last_episode_is_empty(self, flat: Catalog) -> None:
        """Test that nothing follows the last episode."""
        (anchor,) = await resolve(flat, (AnchorType.AFTER, "E20"))

        assert anchored_ids(anchor, flat) == set()

    def test_no_anchors_includes_everything(self, flat: Catalog) -> None:
        """Test that an unbounded range is the whole show."""
        assert intersect([], flat) == set(range(1, 21))


class TestSeasonRanges:
    """Tests for season-structured ranges."""

    @pytest.mark.asyncio
    async def test_from_mid_season_includes_later_seasons(self, yearly: Catalog) -> None:
        """Test that from S02E17 runs to the end of the show."""
        (anchor,) = await resolve(yearly, (AnchorType.FROM, "S02E17"))

        assert anchored_ids(anchor, yearly) == {217, 218, 219, 220, 301, 302}

    @pytest.mark.asyncio
    async def test_to_season_start_includes_earlier_seasons(self, yearly: Catalog) -> None:
        """Test that to S02E01 stops at the end of season 1."""
        (anchor,) = await resolve(yearly, (AnchorType.TO, "S02E01"))

        assert anchored_ids(anchor, yearly) == {101, 102, 103}

    @pytest.mark.asyncio
    async def test_whole_season_from_season_anchors(self, yearly: Catalog) -> None:
        """Test that from S02 through S02 is exactly season 2."""
        anchors = await resolve(yearly, (AnchorType.FROM, "S02"), (AnchorType.THROUGH, "S02"))

        assert intersect(anchors, yearly) == set(range(201, 221))

    @pytest.mark.asyncio
    async def test_season_range_across_seasons(self, yearly: Catalog) -> None:
        """Test a range spanning a season boundary."""
        anchors = await resolve(
            yearly, (AnchorType.AFTER, "S01E02"), (AnchorType.THROUGH, "S02E02")
        )

        assert intersect(anchors, yearly) == {103, 201, 202}

    @pytest.mark.asyncio
    async def test_game_seasons_follow_partition_order(self, by_game: Catalog) -> None:
        """Test that game-season ranges use game order, not show order."""
        anchors = await resolve(by_game, (AnchorType.FROM, "S02E05"))

        assert intersect(anchors, by_game) == {11, 12}
