"""Tests for query parameter encoding."""

from datetime import datetime, timezone

from gbtool.api.filters import DateRange, Query, encode_value
from gbtool.api.models import Listing, Video, is_guid, is_id


class TestQuery:
    """Tests for Query.to_params."""

    def test_empty_query_requests_json(self) -> None:
        """Test that every query asks for JSON."""
        assert Query().to_params() == {"format": "json"}

    def test_fields_sort_and_filters(self) -> None:
        """Test encoding of fields, sort and filters."""
        params = Query(
            fields=["id", "name"],
            sort="publish_date",
            direction="desc",
            filters={"video_show": 3, "premium": True},
            limit=5,
            offset=10,
        ).to_params()

        assert params == {
            "format": "json",
            "field_list": "id,name",
            "sort": "publish_date:desc",
            "filter": "video_show:3,premium:true",
            "limit": "5",
            "offset": "10",
        }

    def test_resources_and_page(self) -> None:
        """Test search-specific parameters."""
        params = Query(resources=["video", "game"], page=2).to_params()

        assert params["resources"] == "video,game"
        assert params["page"] == "2"

    def test_with_filters_merges(self) -> None:
        """Test that added filters override existing ones and the original is unchanged."""
        base = Query(filters={"premium": False, "video_show": 1})

        merged = base.with_filters(premium=True, name="Nidhogg")

        assert merged.filters == {"premium": True, "video_show": 1, "name": "Nidhogg"}
        assert base.filters == {"premium": False, "video_show": 1}


class TestEncodeValue:
    """Tests for filter value encoding."""

    def test_date_range(self) -> None:
        """Test that date ranges use the API's start|end form."""
        value = DateRange(
            start=datetime(2019, 1, 1, tzinfo=timezone.utc),
            end=datetime(2019, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        )

        assert encode_value(value) == "2019-01-01 00:00:00|2019-12-31 23:59:59"

    def test_booleans(self) -> None:
        """Test lowercase booleans."""
        assert encode_value(True) == "true"
        assert encode_value(False) == "false"

    def test_scalars(self) -> None:
        """Test strings and numbers pass through."""
        assert encode_value(42) == "42"
        assert encode_value("Quick Look") == "Quick Look"


class TestModels:
    """Tests for resource model helpers."""

    def test_is_id(self) -> None:
        """Test ID detection."""
        assert is_id(42)
        assert is_id("42")
        assert not is_id(0)
        assert not is_id(True)
        assert not is_id("2300-42")
        assert not is_id("quick look")

    def test_is_guid(self) -> None:
        """Test GUID detection."""
        assert is_guid("2300-42")
        assert not is_guid("42")
        assert not is_guid("S02E17")

    def test_video_game_and_ref(self) -> None:
        """Test that only game associations count as the video's game."""
        video = Video.model_validate(
            {
                "id": 7,
                "associations": [
                    {"name": "Jeff", "api_detail_url": "https://gb.test/api/person/3040-1/"},
                    {"name": "Nidhogg", "api_detail_url": "https://gb.test/api/game/3030-2/"},
                ],
            }
        )

        assert video.game is not None
        assert video.game.name == "Nidhogg"
        assert video.ref == "2300-7"

    def test_unknown_fields_are_kept(self) -> None:
        """Test that extra API fields survive validation."""
        video = Video.model_validate({"id": 1, "youtube_id": "abc"})

        assert video.model_dump()["youtube_id"] == "abc"

    def test_listing_truncated(self) -> None:
        """Test truncation flag."""
        assert Listing[Video](items=[Video(id=1)], total=3).truncated
        assert not Listing[Video](items=[Video(id=1)], total=1).truncated
