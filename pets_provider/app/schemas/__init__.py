"""
Pydantic schema definitions for pet payloads.

Schemas are separated from the store engine so that validation rules
live in one place and are shared by inserts and updates.
"""
