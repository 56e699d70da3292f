"""
Provider package initializer.

``core`` holds the contract, configuration, logging setup, errors and
the SQLite store engine; ``schemas`` the pydantic models of a pet;
``services`` the validator, the locator router, change notification
and the ``PetProvider`` facade built on top of them.
"""
