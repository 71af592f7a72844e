"""Built-in device profiles."""

from typing import Iterable, Iterator, Tuple

from .errors import UnknownProfileError
from .models import Profile, TextRule

DEFAULT_PROFILES: Tuple[Profile, ...] = (
    Profile(
        id="nst",
        name="NST",
        description="NOOK Simple Touch with image resizing (600x800) and 16-level grayscale.",
        text_rules=(
            TextRule(
                target_path="OEBPS/content.opf",
                pattern=r'<meta name="book-type" content="comic"/>\s*',
                replacement="",
            ),
        ),
        remove_paths=frozenset({"oceanofpdf.com"}),
        max_width=600,
        max_height=800,
        grayscale_levels=16,
    ),
    Profile(
        id="kobo",
        name="Kobo",
        description="Kobo image resizing (1027x1448) and 16-level grayscale",
        max_width=1027,
        max_height=1448,
        grayscale_levels=16,
    ),
    Profile(
        id="remarkable",
        name="Remarkable",
        description="Remarkable image resizing (1404x1872) and 256-level grayscale",
        max_width=1404,
        max_height=1872,
        grayscale_levels=256,
    ),
    Profile(
        id="pass-through",
        name="Pass-Through",
        description="Unpack and Repack only",
    ),
)


class ProfileTable:
    """Immutable, ordered lookup of profiles by id."""

    def __init__(self, profiles: Iterable[Profile] = DEFAULT_PROFILES):
        self._profiles = tuple(profiles)
        self._by_id = {}
        for profile in self._profiles:
            if profile.id in self._by_id:
                raise ValueError(f"Duplicate profile id: {profile.id!r}")
            self._by_id[profile.id] = profile
        if not self._profiles:
            raise ValueError("A profile table needs at least one profile")

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, profile_id) -> bool:
        return profile_id in self._by_id

    @property
    def default(self) -> Profile:
        return self._profiles[0]

    def get(self, profile_id: str) -> Profile:
        try:
            return self._by_id[profile_id]
        except KeyError:
            raise UnknownProfileError(profile_id) from None
