"""Stateful managers for the engine.

Each module owns one part of the workspace lifecycle (session identity,
project persistence, the live workspace).  Managers raise domain exceptions
(``LookupError``, ``ValueError``, ``RuntimeError``), never HTTP exceptions --
that translation is the router's responsibility.
"""
