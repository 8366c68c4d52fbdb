"""Concrete :class:`SqlToolkit` implementations."""
