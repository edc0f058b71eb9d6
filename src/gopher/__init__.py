"""Gopher runs fix workflows across workspace projects and watches them live."""

__version__ = "0.1.0"
