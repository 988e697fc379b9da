# marketing_auth/services/profiles.py
"""
Per-provider profile normalizers.

Each provider returns its own profile shape; a normalizer picks the subject id
and maps the fields we keep into the cached ``profile`` snippet.
"""
from typing import Any, Dict, Optional


class ProfileNormalizer:
    id_field = "id"

    def user_id(self, raw: Dict[str, Any]) -> Optional[str]:
        value = raw.get(self.id_field)
        return str(value) if value not in (None, "") else None

    def normalize(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class TwitterProfile(ProfileNormalizer):
    id_field = "id_str"

    def normalize(self, raw):
        return {
            "id": self.user_id(raw),
            "username": raw.get("screen_name"),
            "name": raw.get("name"),
            "profileImage": raw.get("profile_image_url_https"),
        }


class FacebookProfile(ProfileNormalizer):
    def normalize(self, raw):
        picture = raw.get("picture") or {}
        return {
            "id": self.user_id(raw),
            "name": raw.get("name"),
            "email": raw.get("email"),
            "profileImage": (picture.get("data") or {}).get("url"),
        }


class LinkedInProfile(ProfileNormalizer):
    def normalize(self, raw):
        return {
            "id": self.user_id(raw),
            "firstName": raw.get("localizedFirstName"),
            "lastName": raw.get("localizedLastName"),
        }


class GoogleProfile(ProfileNormalizer):
    id_field = "sub"

    def normalize(self, raw):
        return {
            "id": self.user_id(raw),
            "name": raw.get("name"),
            "email": raw.get("email"),
            "picture": raw.get("picture"),
        }


class InstagramProfile(ProfileNormalizer):
    def normalize(self, raw):
        return {"id": self.user_id(raw), "username": raw.get("username")}


NORMALIZERS: Dict[str, ProfileNormalizer] = {
    "twitter": TwitterProfile(),
    "facebook": FacebookProfile(),
    "linkedin": LinkedInProfile(),
    "google": GoogleProfile(),
    "instagram": InstagramProfile(),
}
