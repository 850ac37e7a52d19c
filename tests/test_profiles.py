"""Tests for chatapi.services.profiles: partial updates, search and avatar upload."""

import unittest
import uuid
from unittest.mock import MagicMock

from chatapi.schemas.profile import UpdateProfileRequest
from chatapi.services.errors import InvalidAvatarError, UserNotFoundError, ValidationFailedError
from chatapi.services.profiles import ProfileService, sniff_image_type
from tests.support import DatabaseTestCase, make_settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


class TestUpdateProfile(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.profiles = ProfileService(self.settings)
        self.user = self.make_user("Alice")
        self.user.bio = "hello"
        self.db.commit()

    def test_only_supplied_fields_change(self) -> None:
        updated = self.profiles.update_profile(
            self.db, self.user.id, UpdateProfileRequest(name="Alicia")
        )
        self.assertEqual(updated.name, "Alicia")
        self.assertEqual(updated.bio, "hello")

    def test_empty_string_is_a_value(self) -> None:
        updated = self.profiles.update_profile(self.db, self.user.id, UpdateProfileRequest(bio=""))
        self.assertEqual(updated.bio, "")

    def test_explicit_null_clears_nullable_field(self) -> None:
        updated = self.profiles.update_profile(
            self.db, self.user.id, UpdateProfileRequest.model_validate({"bio": None})
        )
        self.assertIsNone(updated.bio)

    def test_name_cannot_be_cleared(self) -> None:
        with self.assertRaises(ValidationFailedError):
            self.profiles.update_profile(
                self.db, self.user.id, UpdateProfileRequest.model_validate({"name": None})
            )
        self.db.expire_all()
        self.assertEqual(self.profiles.get_profile(self.db, self.user.id).name, "Alice")

    def test_unknown_user(self) -> None:
        with self.assertRaises(UserNotFoundError):
            self.profiles.get_profile(self.db, uuid.uuid4())


class TestSearchUsers(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.profiles = ProfileService(self.settings)
        self.make_user("Alice", "alice@example.com")
        self.make_user("Alicia", "alicia@example.com")
        self.make_user("Bob", "bob@other.org")

    def test_matches_name_or_email_case_insensitively(self) -> None:
        users, total = self.profiles.search_users(self.db, "ALI")
        self.assertEqual([u.name for u in users], ["Alice", "Alicia"])
        self.assertEqual(total, 2)

        users, total = self.profiles.search_users(self.db, "other.org")
        self.assertEqual([u.name for u in users], ["Bob"])

    def test_limit_caps_results_but_not_total(self) -> None:
        users, total = self.profiles.search_users(self.db, "example", limit=1)
        self.assertEqual(len(users), 1)
        self.assertEqual(total, 2)

    def test_wildcards_are_literal(self) -> None:
        users, total = self.profiles.search_users(self.db, "%")
        self.assertEqual((users, total), ([], 0))


class TestAvatarUpload(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.make_user("Alice")

    def test_valid_image_updates_profile(self) -> None:
        profiles = ProfileService(self.settings)
        url = profiles.upload_avatar(self.db, self.user.id, PNG_BYTES)
        self.assertTrue(url.startswith(self.settings.AVATAR_BASE_URL + "/avatar_"))
        self.assertTrue(url.endswith(".png"))
        self.assertEqual(profiles.get_profile(self.db, self.user.id).profile_image_url, url)

    def test_store_receives_sniffed_type(self) -> None:
        store = MagicMock()
        store.save.return_value = "https://cdn.example.com/a.jpg"
        profiles = ProfileService(self.settings, avatar_store=store)
        url = profiles.upload_avatar(self.db, self.user.id, JPEG_BYTES)
        self.assertEqual(url, "https://cdn.example.com/a.jpg")
        store.save.assert_called_once_with(self.user.id, JPEG_BYTES, "image/jpeg", ".jpg")

    def test_rejected_uploads(self) -> None:
        profiles = ProfileService(make_settings(AVATAR_MAX_BYTES=16))
        cases = [
            ("empty", b""),
            ("not an image", b"plain text, not an image"[:10]),
            ("too large", PNG_BYTES),
        ]
        for label, data in cases:
            with self.subTest(label):
                with self.assertRaises(InvalidAvatarError):
                    profiles.upload_avatar(self.db, self.user.id, data)
        self.assertIsNone(profiles.get_profile(self.db, self.user.id).profile_image_url)


class TestSniffImageType(unittest.TestCase):
    def test_known_signatures(self) -> None:
        self.assertEqual(sniff_image_type(PNG_BYTES), ("image/png", ".png"))
        self.assertEqual(sniff_image_type(JPEG_BYTES), ("image/jpeg", ".jpg"))
        self.assertEqual(sniff_image_type(b"GIF89a" + b"\x00" * 8), ("image/gif", ".gif"))
        self.assertEqual(sniff_image_type(b"RIFF\x00\x00\x00\x00WEBPVP8 "), ("image/webp", ".webp"))

    def test_unknown_signature(self) -> None:
        self.assertIsNone(sniff_image_type(b"%PDF-1.7"))
        self.assertIsNone(sniff_image_type(b"RIFF\x00\x00\x00\x00WAVE"))


if __name__ == "__main__":
    unittest.main()
