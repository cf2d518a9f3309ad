"""
Unit Tests for QR, program, place and mode lookups
"""
import pytest
from google.cloud.firestore import GeoPoint

from event_service.models import ErrorKind
from event_service.services.lookup_service import (
    fetch_mode,
    fetch_places,
    fetch_program_info,
    fetch_qr_info,
)


class TestDocumentLookups:
    """Test single-document reads"""

    @pytest.mark.asyncio
    async def test_qr_info(self, fake_db):
        fake_db.seed("QR", "qr-1", {"programId": "p1", "reward": 10})

        result = await fetch_qr_info(fake_db, "qr-1")

        assert result.ok is True
        assert result.data == {"programId": "p1", "reward": 10}

    @pytest.mark.asyncio
    async def test_unknown_qr(self, fake_db):
        result = await fetch_qr_info(fake_db, "missing")

        assert result.ok is False
        assert result.error == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_program_info(self, fake_db):
        fake_db.seed("program", "p1", {"isOpen": True, "title": "Parade"})

        result = await fetch_program_info(fake_db, "p1")

        assert result.data["title"] == "Parade"

    @pytest.mark.asyncio
    async def test_store_failure(self, fake_db, store_down):
        fake_db.failure = store_down

        result = await fetch_program_info(fake_db, "p1")

        assert result.error == ErrorKind.STORE


class TestPlaces:
    """Test place lookups"""

    @pytest.fixture(autouse=True)
    def places(self, fake_db):
        fake_db.seed(
            "place",
            "station",
            {
                "name": "Station",
                "congestion": 2,
                "center": GeoPoint(35.68, 139.76),
                "latitude": 35.68,
                "longitude": 139.76,
            },
        )
        fake_db.seed("place", "hall", {"name": "Hall", "congestion": 0})

    @pytest.mark.asyncio
    async def test_all_places(self, fake_db):
        result = await fetch_places(fake_db)

        assert result.ok is True
        assert sorted(place.name for place in result.data) == ["Hall", "Station"]

    @pytest.mark.asyncio
    async def test_single_place(self, fake_db):
        result = await fetch_places(fake_db, "station")

        assert len(result.data) == 1
        place = result.data[0]
        assert place.id == "station"
        assert place.congestion == 2
        assert place.center.latitude == 35.68
        assert place.center.longitude == 139.76

    @pytest.mark.asyncio
    async def test_missing_place_is_empty(self, fake_db):
        result = await fetch_places(fake_db, "nowhere")

        assert result.ok is True
        assert result.data == []


class TestMode:
    """Test deployment and user developer flags"""

    @pytest.mark.asyncio
    async def test_mode_flags(self, fake_db, identity, registered_user):
        fake_db.seed("mode", "mode", {"dev": True})

        result = await fetch_mode(fake_db, identity.uid)

        assert result.data.web_mode is True
        assert result.data.user_mode is False
        assert result.data.model_dump(by_alias=True) == {
            "webMode": True,
            "userMode": False,
        }

    @pytest.mark.asyncio
    async def test_missing_mode_document(self, fake_db, identity, registered_user):
        result = await fetch_mode(fake_db, identity.uid)

        assert result.ok is True
        assert result.data.web_mode is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, fake_db):
        fake_db.seed("mode", "mode", {"dev": False})

        result = await fetch_mode(fake_db, "ghost")

        assert result.error == ErrorKind.NOT_FOUND
