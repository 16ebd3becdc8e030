"""Services subpackage - lookups and checks that sit around the engine."""
