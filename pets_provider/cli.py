#!/usr/bin/env python3
"""
Command line access to the pets database.

A thin wrapper around ``PetProvider`` for inspecting and seeding a
database by hand.

Usage:
    pets-provider --db ./pets.db insert-dummy
    pets-provider --db ./pets.db list
    pets-provider --db ./pets.db show 3
    pets-provider --db ./pets.db delete 3
    pets-provider --db ./pets.db delete-all
    pets-provider type content://com.example.android.pets/pets/3

Without --db the database from PETS_DATABASE_URL is used.
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from .app.core.config import settings
from .app.core.contract import Gender
from .app.core.exceptions import PetsProviderError
from .app.core.logging_config import setup_logging
from .app.schemas.pet import PetRead
from .app.services.pet_provider import PetProvider

DUMMY_PET = {
    "name": "Tommy",
    "breed": "Pitbull",
    "gender": Gender.MALE,
    "weight": 45,
}


def _format(pet: PetRead) -> str:
    breed = pet.breed or "unknown breed"
    return f"{pet.id:>4}  {pet.name} ({breed}), {Gender(pet.gender).name.lower()}, {pet.weight}"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pets-provider", description="Inspect and edit the pets database.")
    ap.add_argument("--db", help="Path to SQLite DB file (defaults to PETS_DATABASE_URL)")
    ap.add_argument("--log-level", help="Logging level (defaults to LOG_LEVEL)")
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("insert-dummy", help="Insert the sample pet Tommy")
    sub.add_parser("list", help="List all pets")
    show = sub.add_parser("show", help="Show one pet")
    show.add_argument("id", type=int)
    delete = sub.add_parser("delete", help="Delete one pet")
    delete.add_argument("id", type=int)
    sub.add_parser("delete-all", help="Delete every pet")
    mime = sub.add_parser("type", help="Print the MIME type of a locator")
    mime.add_argument("locator")
    return ap


def run(args: argparse.Namespace, provider: PetProvider) -> int:
    contract = provider.contract
    if args.command == "insert-dummy":
        uri = provider.insert(contract.content_uri, DUMMY_PET)
        if uri is None:
            print("[!] Error with saving pet", file=sys.stderr)
            return 1
        print(f"[+] Pet saved: {uri}")
    elif args.command == "list":
        pets = provider.query(contract.content_uri, order_by="_id").as_pets()
        if not pets:
            print("No pets yet.")
        for pet in pets:
            print(_format(pet))
    elif args.command == "show":
        pets = provider.query(contract.item_uri(args.id)).as_pets()
        if not pets:
            print(f"[!] No pet with id {args.id}", file=sys.stderr)
            return 2
        print(_format(pets[0]))
    elif args.command == "delete":
        if provider.delete(contract.item_uri(args.id)) == 0:
            print(f"[!] No pet with id {args.id}", file=sys.stderr)
            return 2
        print(f"[+] Pet {args.id} deleted")
    elif args.command == "delete-all":
        rows = provider.delete(contract.content_uri)
        print(f"[+] {rows} pet(s) deleted")
    elif args.command == "type":
        print(provider.get_type(args.locator))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = replace(settings, database_url=args.db) if args.db else settings
    setup_logging(args.log_level, cfg=cfg)
    try:
        with PetProvider(cfg) as provider:
            return run(args, provider)
    except (PetsProviderError, ValueError) as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
