"""Tests for PinService."""

import io

import pytest
from PIL import Image
from postgrest.exceptions import APIError

from pinclone.core.errors import ErrorKind
from pinclone.modules.pins.images import file_extension, read_dimensions
from pinclone.modules.pins.schemas import PinCreate
from pinclone.modules.pins.service import PinService, map_pin, validate_page


def png_bytes(width=640, height=480) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def service(supabase):
    return PinService(supabase, pins_bucket="pins")


class TestMapPin:
    def test_defaults_for_missing_dimensions_and_username(self):
        pin = map_pin({
            "id": 7,
            "user_id": "u-1",
            "image_url": "https://cdn.test/a.jpg",
            "created_at": "2024-01-01T00:00:00+00:00",
            "profiles": {"username": None, "avatar_url": None, "full_name": None},
        })
        assert pin.id == "7"
        assert (pin.width, pin.height) == (300, 400)
        assert pin.uploader.username == "unknown_user"

    def test_no_joined_profile_means_no_uploader(self):
        pin = map_pin({
            "id": "p",
            "user_id": "u-1",
            "image_url": "https://cdn.test/a.jpg",
            "created_at": "2024-01-01T00:00:00+00:00",
            "width": 10,
            "height": 20,
        })
        assert pin.uploader is None


class TestValidatePage:
    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, 101)])
    def test_rejects_out_of_range(self, page, limit):
        assert validate_page(page, limit).kind == ErrorKind.VALIDATION

    def test_accepts_bounds(self):
        assert validate_page(1, 100) is None


class TestFetchPins:
    def test_all_pins_newest_first_with_uploader(self, supabase, service):
        supabase.add_pins("u-alice", 3)
        pins, error = service.fetch_all_pins(page=1, limit=20)
        assert error is None
        assert [p.id for p in pins] == ["pin-u-alice-2", "pin-u-alice-1", "pin-u-alice-0"]
        assert pins[0].uploader.username == "alice"
        assert pins[0].uploader.full_name == "Alice Liddell"

    def test_second_page(self, supabase, service):
        supabase.add_pins("u-alice", 25)
        first, _ = service.fetch_all_pins(page=1, limit=20)
        second, error = service.fetch_all_pins(page=2, limit=20)
        assert error is None
        assert len(first) == 20
        assert [p.id for p in second] == [f"pin-u-alice-{n}" for n in range(4, -1, -1)]

    def test_invalid_page_makes_no_store_call(self, supabase, service):
        pins, error = service.fetch_all_pins(page=0)
        assert pins == []
        assert error.kind == ErrorKind.VALIDATION
        assert supabase.calls == []

    def test_store_failure(self, supabase, service):
        supabase.errors[("pins", "select")] = APIError({"message": "timeout", "code": "57014"})
        pins, error = service.fetch_all_pins()
        assert pins == []
        assert error.kind == ErrorKind.STORE

    def test_by_id(self, supabase, service):
        supabase.add_pins("u-bob", 1)
        pin, error = service.fetch_pin_by_id("pin-u-bob-0")
        assert error is None
        assert pin.uploader.username == "bob_builder"

    def test_by_id_missing(self, service):
        pin, error = service.fetch_pin_by_id("pin-missing")
        assert pin is None
        assert error.kind == ErrorKind.NOT_FOUND

    def test_by_user_only_returns_that_users_pins(self, supabase, service):
        supabase.add_pins("u-alice", 2)
        supabase.add_pins("u-bob", 3, start=10)
        pins, error = service.fetch_pins_by_user_id("u-bob", page=1, limit=18)
        assert error is None
        assert [p.user_id for p in pins] == ["u-bob"] * 3
        assert pins[0].id == "pin-u-bob-12"

    def test_by_user_requires_id(self, service):
        _, error = service.fetch_pins_by_user_id("")
        assert error.kind == ErrorKind.VALIDATION


class TestCreatePin:
    def test_requires_authenticated_user(self, supabase, service):
        pin, error = service.create_pin(None, PinCreate(image_url="https://x/y.jpg", width=1, height=1))
        assert pin is None
        assert error.kind == ErrorKind.UNAUTHENTICATED
        assert supabase.writes() == []

    def test_missing_height_is_rejected_without_write(self, supabase, service):
        pin, error = service.create_pin("u-alice", PinCreate(image_url="https://x/y.jpg", width=640))
        assert pin is None
        assert error.kind == ErrorKind.VALIDATION
        assert supabase.writes() == []

    def test_missing_image_url_is_rejected(self, supabase, service):
        _, error = service.create_pin("u-alice", PinCreate(width=640, height=480))
        assert error.message == "Image URL is required."
        assert supabase.writes() == []

    def test_non_positive_dimensions_are_rejected(self, supabase, service):
        _, error = service.create_pin("u-alice", PinCreate(image_url="https://x/y.jpg", width=0, height=480))
        assert error.kind == ErrorKind.VALIDATION
        assert supabase.writes() == []

    def test_creates_pin_owned_by_caller(self, supabase, service):
        pin, error = service.create_pin("u-alice", PinCreate(
            image_url="https://x/y.jpg", title="Tea party", width=640, height=480
        ))
        assert error is None
        assert pin.user_id == "u-alice"
        assert pin.title == "Tea party"
        assert pin.uploader.username == "alice"
        assert supabase.tables["pins"][-1]["user_id"] == "u-alice"

    def test_uploader_missing_profile_is_tolerated(self, supabase, service):
        pin, error = service.create_pin("u-ghost", PinCreate(image_url="https://x/y.jpg", width=1, height=1))
        assert error is None
        assert pin.uploader is None

    def test_insert_failure(self, supabase, service):
        supabase.errors[("pins", "insert")] = APIError({"message": "permission denied", "code": "42501"})
        pin, error = service.create_pin("u-alice", PinCreate(image_url="https://x/y.jpg", width=1, height=1))
        assert pin is None
        assert error.kind == ErrorKind.STORE
        assert error.message == "Failed to create pin: permission denied"


class TestUploadAndCreatePin:
    def test_reads_dimensions_from_image(self, supabase, service):
        pin, error = service.upload_and_create_pin("u-alice", png_bytes(640, 480), "photo.png", "image/png",
                                                   title="Roses")
        assert error is None
        assert (pin.width, pin.height) == (640, 480)
        (bucket, key), = supabase.storage.objects
        assert bucket == "pins"
        assert key.startswith("public/u-alice/") and key.endswith(".png")
        assert pin.image_url.endswith(key)

    def test_explicit_dimensions_win(self, service):
        pin, error = service.upload_and_create_pin("u-alice", png_bytes(), "p.png", "image/png",
                                                   width=100, height=150)
        assert error is None
        assert (pin.width, pin.height) == (100, 150)

    def test_unreadable_image(self, supabase, service):
        _, error = service.upload_and_create_pin("u-alice", b"not an image", "p.png", "image/png")
        assert error.message == "Could not read image dimensions."
        assert supabase.storage.objects == {}

    def test_upload_failure_is_store_error(self, supabase, service):
        supabase.storage.fail_upload = True
        _, error = service.upload_and_create_pin("u-alice", png_bytes(), "p.png", "image/png")
        assert error.kind == ErrorKind.STORE
        assert supabase.writes() == []

    def test_failed_insert_removes_uploaded_file(self, supabase, service):
        supabase.errors[("pins", "insert")] = APIError({"message": "boom", "code": "XX000"})
        _, error = service.upload_and_create_pin("u-alice", png_bytes(), "p.png", "image/png")
        assert error.kind == ErrorKind.STORE
        assert supabase.storage.objects == {}
        assert len(supabase.storage.removed) == 1


class TestImages:
    def test_read_dimensions(self):
        assert read_dimensions(png_bytes(32, 16)) == (32, 16)

    def test_read_dimensions_of_garbage(self):
        assert read_dimensions(b"\x00\x01") is None

    def test_file_extension(self):
        assert file_extension("Holiday.JPEG") == "jpeg"
        assert file_extension(None) == "jpg"
        assert file_extension("noext", "png") == "png"
