"""Pure domain value objects shared by engines, modules and services."""
