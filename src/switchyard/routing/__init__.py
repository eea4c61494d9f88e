"""Routing — route registration, compiled matching, and dispatch.

Routes are registered during setup and compiled into an immutable
lookup table when the router is prepared.
"""
