"""External services: persistence and market prices."""
