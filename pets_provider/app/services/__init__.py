"""
Service layer.

Each service encapsulates one concern of the provider: validation,
routing, change notification and the ``PetProvider`` facade that
combines them with the store engine.
"""
