"""Tests for season and episode lookup."""

import pytest

from gbtool.catalog.lookup import describe_episode, find_episode, find_season, season_candidates
from gbtool.catalog.models import Catalog, PartitionKind
from gbtool.utils.errors import EpisodeNotFoundError, SeasonNotFoundError


class TestFindSeason:
    """Tests for find_season."""

    def test_by_number(self, yearly: Catalog) -> None:
        """Test that a number indexes the preferred partition."""
        reference = find_season(yearly, "2")

        assert reference.kind is PartitionKind.YEARS
        assert reference.number == 2
        assert reference.name == "2018"
        assert reference.season_count == 3
        assert reference.season_episode_count == 20
        assert reference.show_episode_count == 25

    def test_out_of_range_number_matches_year_name(self, yearly: Catalog) -> None:
        """Test that a year outside the season range is matched by name."""
        reference = find_season(yearly, "2019")

        assert reference.number == 3
        assert reference.name == "2019"

    def test_game_name(self, by_game: Catalog) -> None:
        """Test case-insensitive partial game names."""
        reference = find_season(by_game, "chrono")

        assert reference.kind is PartitionKind.GAMES
        assert reference.number == 2
        assert reference.name == "Chrono Trigger"

    def test_number_in_game_partition_falls_back_to_years(self, by_game: Catalog) -> None:
        """Test that a year number is found even when games are preferred."""
        reference = find_season(by_game, "2019")

        assert reference.kind is PartitionKind.YEARS
        assert reference.name == "2019"

    def test_no_match(self, yearly: Catalog) -> None:
        """Test that an unknown season raises."""
        with pytest.raises(SeasonNotFoundError):
            find_season(yearly, "99")

    def test_name_is_not_a_regex(self, by_game: Catalog) -> None:
        """Test that season text is matched literally."""
        with pytest.raises(SeasonNotFoundError):
            find_season(by_game, "Persona.*")

    def test_candidates_order(self, by_game: Catalog) -> None:
        """Test that numeric readings come before game names."""
        candidates = list(season_candidates(by_game, "1", PartitionKind.YEARS))

        assert candidates[0] == (PartitionKind.YEARS, 1)


class TestFindEpisode:
    """Tests for find_episode."""

    def test_show_position(self, yearly: Catalog) -> None:
        """Test that an episode without a season is a show position."""
        reference = find_episode(yearly, 4)

        assert reference.video.id == 201
        assert reference.number == 2
        assert reference.season_episode_number == 1
        assert reference.show_episode_number == 4

    def test_season_and_episode(self, yearly: Catalog) -> None:
        """Test that S02E17 lands on the 17th episode of the second season."""
        reference = find_episode(yearly, 17, season="2")

        assert reference.video.id == 217
        assert reference.kind is PartitionKind.YEARS
        assert reference.number == 2
        assert reference.name == "2018"
        assert reference.season_episode_number == 17
        assert reference.show_episode_number == 20
        assert reference.season_episode_count == 20

    def test_game_season_fallback(self, by_game: Catalog) -> None:
        """Test that a game name works even when year seasons are requested."""
        reference = find_episode(by_game, 2, season="Persona", kind=PartitionKind.YEARS)

        assert reference.kind is PartitionKind.GAMES
        assert reference.video.id == 2

    def test_episode_out_of_show_range(self, yearly: Catalog) -> None:
        """Test show positions past the end."""
        with pytest.raises(EpisodeNotFoundError):
            find_episode(yearly, 26)

        with pytest.raises(EpisodeNotFoundError):
            find_episode(yearly, 0)

    def test_episode_out_of_season_range(self, yearly: Catalog) -> None:
        """Test season positions past the end."""
        with pytest.raises(EpisodeNotFoundError):
            find_episode(yearly, 5, season="3")

    def test_unknown_season(self, yearly: Catalog) -> None:
        """Test that an unknown season is a season error."""
        with pytest.raises(SeasonNotFoundError):
            find_episode(yearly, 1, season="Persona")


class TestDescribeEpisode:
    """Tests for describe_episode."""

    def test_game_partition_positions(self, by_game: Catalog) -> None:
        """Test positions within a game season."""
        reference = describe_episode(by_game, 9, PartitionKind.GAMES)

        assert reference.name == "Chrono Trigger"
        assert reference.number == 2
        assert reference.season_episode_number == 3
        assert reference.show_episode_number == 9
        assert reference.season_count == 2

    def test_unknown_video(self, by_game: Catalog) -> None:
        """Test that a video outside the catalog raises."""
        with pytest.raises(EpisodeNotFoundError):
            describe_episode(by_game, 999)
