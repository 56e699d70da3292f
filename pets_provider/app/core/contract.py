"""
Contract of the pets provider.

Static definitions shared by every layer: the table and column names,
the enumerated gender values and the content locators used to address
either the whole pets collection or a single pet.  A ``PetContract``
is an immutable value; the module-level ``CONTRACT`` is built once
from the default settings and shared read-only.
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .config import Settings, settings as default_settings
from .exceptions import RoutingError


CONTENT_SCHEME = "content"
TABLE_NAME = "pets"

COLUMN_ID = "_id"
COLUMN_PET_NAME = "name"
COLUMN_PET_BREED = "breed"
COLUMN_PET_GENDER = "gender"
COLUMN_PET_WEIGHT = "weight"

#: Largest value SQLite can store in an INTEGER column.
MAX_SQLITE_INTEGER = 2**63 - 1

ALL_COLUMNS: Tuple[str, ...] = (
    COLUMN_ID,
    COLUMN_PET_NAME,
    COLUMN_PET_BREED,
    COLUMN_PET_GENDER,
    COLUMN_PET_WEIGHT,
)


class Gender(enum.IntEnum):
    UNKNOWN = 0
    MALE = 1
    FEMALE = 2


def is_valid_gender(value) -> bool:
    """Return True if ``value`` is unknown, male or female."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in (Gender.UNKNOWN, Gender.MALE, Gender.FEMALE)


class MatchKind(enum.Enum):
    COLLECTION = "collection"
    ITEM = "item"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class UriMatch:
    kind: MatchKind
    item_id: Optional[int] = None


@dataclass(frozen=True)
class PetContract:
    """Locator construction and classification for one authority/path pair."""

    authority: str = "com.example.android.pets"
    path: str = "pets"
    scheme: str = CONTENT_SCHEME
    table_name: str = TABLE_NAME
    columns: Tuple[str, ...] = ALL_COLUMNS
    _path_re: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern = re.compile(r"/%s(?:/([0-9]+))?" % re.escape(self.path))
        object.__setattr__(self, "_path_re", pattern)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PetContract":
        return cls(authority=cfg.content_authority, path=cfg.path_pets)

    @property
    def base_content_uri(self) -> str:
        return f"{self.scheme}://{self.authority}"

    @property
    def content_uri(self) -> str:
        """Locator of the whole pets collection."""
        return f"{self.base_content_uri}/{self.path}"

    @property
    def content_list_type(self) -> str:
        return f"vnd.{self.authority}.dir/{self.path}"

    @property
    def content_item_type(self) -> str:
        return f"vnd.{self.authority}.item/{self.path}"

    def item_uri(self, item_id: int) -> str:
        """Locator of the single pet ``item_id``."""
        if isinstance(item_id, bool) or not isinstance(item_id, int) or not 0 <= item_id <= MAX_SQLITE_INTEGER:
            raise ValueError(f"Pet id must be a non-negative integer, got {item_id!r}")
        return f"{self.content_uri}/{item_id}"

    def match(self, locator) -> UriMatch:
        """Classify ``locator``; malformed input yields ``NO_MATCH``."""
        if not isinstance(locator, str) or "?" in locator or "#" in locator:
            return UriMatch(MatchKind.NO_MATCH)
        try:
            parts = urlsplit(locator)
        except ValueError:
            return UriMatch(MatchKind.NO_MATCH)
        if parts.scheme != self.scheme or parts.netloc != self.authority:
            return UriMatch(MatchKind.NO_MATCH)
        m = self._path_re.fullmatch(parts.path)
        if m is None:
            return UriMatch(MatchKind.NO_MATCH)
        if m.group(1) is None:
            return UriMatch(MatchKind.COLLECTION)
        digits = m.group(1).lstrip("0") or "0"
        # Length check first: int() refuses very long digit strings.
        if len(digits) > len(str(MAX_SQLITE_INTEGER)) or int(digits) > MAX_SQLITE_INTEGER:
            return UriMatch(MatchKind.NO_MATCH)
        return UriMatch(MatchKind.ITEM, int(digits))

    def parse_id(self, locator: str) -> int:
        """Return the identifier embedded in an item locator."""
        result = self.match(locator)
        if result.kind is not MatchKind.ITEM:
            raise RoutingError(locator, "not an item locator")
        return result.item_id


CONTRACT = PetContract.from_settings(default_settings)
