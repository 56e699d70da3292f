"""
Locator routing.

``UriRouter.route`` maps a locator onto the target an operation acts
on: the whole collection or a single pet.  Anything the contract does
not recognise is a ``RoutingError``; the router never guesses.
"""

from dataclasses import dataclass
from typing import Union

from ..core.contract import CONTRACT, MatchKind, PetContract
from ..core.exceptions import RoutingError


@dataclass(frozen=True)
class Collection:
    """All pets matching the caller's selection."""


@dataclass(frozen=True)
class Item:
    """The single pet ``item_id``."""

    item_id: int


Target = Union[Collection, Item]


class UriRouter:
    def __init__(self, contract: PetContract = CONTRACT):
        self.contract = contract

    def route(self, locator: str) -> Target:
        match = self.contract.match(locator)
        if match.kind is MatchKind.COLLECTION:
            return Collection()
        if match.kind is MatchKind.ITEM:
            return Item(match.item_id)
        raise RoutingError(locator)
