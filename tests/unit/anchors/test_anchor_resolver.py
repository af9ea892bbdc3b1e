"""Tests for anchor resolution."""

import pytest

from gbtool.anchors.parser import AnchorSpec, AnchorType, Direction, Structure
from gbtool.anchors.resolver import AnchorResolver
from gbtool.api.models import Video, VideoShow
from gbtool.catalog.models import Catalog, PartitionKind
from gbtool.matching.videos import VideoMatch, VideoMatchType
from gbtool.utils.errors import AnchorNotFoundError, InputError, UnsupportedSpecError


class StubVideoMatcher:
    """Video matcher returning a fixed video."""

    def __init__(self, video: Video | None = None) -> None:
        self.video = video
        self.queries: list[tuple[str, VideoShow | None]] = []

    async def find(self, query, show=None, filters=None) -> VideoMatch | None:
        self.queries.append((query, show))
        if self.video is None:
            return None
        return VideoMatch(video=self.video, match_type=VideoMatchType.NAME)


class TestResolveIdentifiers:
    """Tests for identifier anchors."""

    @pytest.mark.asyncio
    async def test_season_episode(self, yearly: Catalog) -> None:
        """Test that S02E17 resolves to the 17th episode of season 2."""
        result = await AnchorResolver(yearly).resolve(
            AnchorType.FROM, AnchorSpec(identifier="S02E17")
        )

        assert result.episode.video.id == 217
        assert result.episode.number == 2
        assert result.episode.season_episode_number == 17
        assert result.structure is Structure.SEASON
        assert result.inclusive
        assert result.direction is Direction.FORWARD
        assert result.kind is PartitionKind.YEARS

    @pytest.mark.asyncio
    async def test_episode_only_is_flat(self, yearly: Catalog) -> None:
        """Test that E4 without a season is the show's fourth episode."""
        result = await AnchorResolver(yearly).resolve(AnchorType.TO, AnchorSpec(identifier="E4"))

        assert result.episode.video.id == 201
        assert result.structure is Structure.FLAT
        assert not result.inclusive
        assert result.direction is Direction.BACKWARD

    @pytest.mark.asyncio
    async def test_episode_only_uses_anchor_season(self, yearly: Catalog) -> None:
        """Test that E2 with a separate season reads within that season."""
        result = await AnchorResolver(yearly).resolve(
            AnchorType.FROM, AnchorSpec(identifier="E2", season="3")
        )

        assert result.episode.video.id == 302
        assert result.structure is Structure.SEASON

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "anchor_type,expected",
        [
            (AnchorType.FROM, 201),
            (AnchorType.TO, 201),
            (AnchorType.AFTER, 220),
            (AnchorType.THROUGH, 220),
        ],
    )
    async def test_season_only_outer_boundary(
        self, yearly: Catalog, anchor_type: AnchorType, expected: int
    ) -> None:
        """Test which edge of a season a season-only anchor lands on."""
        result = await AnchorResolver(yearly).resolve(anchor_type, AnchorSpec(identifier="S02"))

        assert result.episode.video.id == expected
        assert result.structure is Structure.SEASON

    @pytest.mark.asyncio
    async def test_season_alone(self, yearly: Catalog) -> None:
        """Test a season given without any identifier."""
        result = await AnchorResolver(yearly).resolve(AnchorType.THROUGH, AnchorSpec(season="2017"))

        assert result.episode.video.id == 103

    @pytest.mark.asyncio
    async def test_numbered_episode_in_game_season(self, by_game: Catalog) -> None:
        """Test an explicit episode number inside a named game season."""
        result = await AnchorResolver(by_game).resolve(
            AnchorType.FROM, AnchorSpec(episode=3, season="Chrono")
        )

        assert result.episode.video.id == 9
        assert result.kind is PartitionKind.GAMES
        assert result.structure is Structure.SEASON

    @pytest.mark.asyncio
    async def test_date_identifier_unsupported(self, yearly: Catalog) -> None:
        """Test that date identifiers fail loudly."""
        with pytest.raises(UnsupportedSpecError, match="not supported"):
            await AnchorResolver(yearly).resolve(AnchorType.THROUGH, AnchorSpec(identifier="2018"))

    @pytest.mark.asyncio
    async def test_unrecognized_identifier(self, yearly: Catalog) -> None:
        """Test that unknown identifiers are input errors."""
        with pytest.raises(InputError, match="S02E14"):
            await AnchorResolver(yearly).resolve(AnchorType.FROM, AnchorSpec(identifier="whenever"))

    @pytest.mark.asyncio
    async def test_missing_episode_is_not_found(self, yearly: Catalog) -> None:
        """Test that an out-of-range anchor reports not found."""
        with pytest.raises(AnchorNotFoundError, match="from anchor"):
            await AnchorResolver(yearly).resolve(AnchorType.FROM, AnchorSpec(identifier="S05E30"))


class TestResolveVideos:
    """Tests for free-text video anchors."""

    @pytest.mark.asyncio
    async def test_video_query_is_flat(self, yearly: Catalog, make_show) -> None:
        """Test that a matched video becomes a flat anchor scoped to the show."""
        show = make_show(1, "Quick Look")
        matcher = StubVideoMatcher(yearly.episodes[5])

        result = await AnchorResolver(yearly, show=show, videos=matcher).resolve(
            AnchorType.AFTER, AnchorSpec(video="Quick Look: Nidhogg")
        )

        assert result.episode.video.id == 203
        assert result.structure is Structure.FLAT
        assert matcher.queries == [("Quick Look: Nidhogg", show)]

    @pytest.mark.asyncio
    async def test_guid_identifier_uses_video_matcher(self, yearly: Catalog) -> None:
        """Test that a GUID identifier is looked up as a video."""
        matcher = StubVideoMatcher(yearly.episodes[0])

        result = await AnchorResolver(yearly, videos=matcher).resolve(
            AnchorType.FROM, AnchorSpec(identifier="2300-101")
        )

        assert result.episode.video.id == 101
        assert matcher.queries[0][0] == "2300-101"

    @pytest.mark.asyncio
    async def test_video_not_found(self, yearly: Catalog) -> None:
        """Test that an unmatched video query reports not found."""
        with pytest.raises(AnchorNotFoundError):
            await AnchorResolver(yearly, videos=StubVideoMatcher()).resolve(
                AnchorType.FROM, AnchorSpec(video="nothing")
            )

    @pytest.mark.asyncio
    async def test_video_from_another_show(self, yearly: Catalog, make_video) -> None:
        """Test that a video outside the catalog cannot anchor the range."""
        matcher = StubVideoMatcher(make_video(999, "2018-01-01 10:00:00"))

        with pytest.raises(AnchorNotFoundError, match="not an episode"):
            await AnchorResolver(yearly, videos=matcher).resolve(
                AnchorType.FROM, AnchorSpec(video="elsewhere")
            )


class TestResolveInputErrors:
    """Tests for contradictory or empty anchors."""

    @pytest.mark.asyncio
    async def test_video_with_season(self, yearly: Catalog) -> None:
        """Test that a video query cannot be combined with a season."""
        with pytest.raises(InputError, match="Cannot combine"):
            await AnchorResolver(yearly, videos=StubVideoMatcher()).resolve(
                AnchorType.FROM, AnchorSpec(video="Nidhogg", season="2")
            )

    @pytest.mark.asyncio
    async def test_identifier_with_episode(self, yearly: Catalog) -> None:
        """Test that only one of identifier, video and episode may be given."""
        with pytest.raises(InputError):
            await AnchorResolver(yearly).resolve(
                AnchorType.FROM, AnchorSpec(identifier="S02E01", episode=3)
            )

    @pytest.mark.asyncio
    async def test_empty_anchor(self, yearly: Catalog) -> None:
        """Test that an anchor must name something."""
        with pytest.raises(InputError):
            await AnchorResolver(yearly).resolve(AnchorType.FROM, AnchorSpec())
