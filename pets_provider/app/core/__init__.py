"""Contract, configuration, errors and persistence of the pets provider."""
