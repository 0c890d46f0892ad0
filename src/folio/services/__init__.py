"""Folio services package.

Each service is a set of pure functions (or a thin stateless class) over
event lists; services share no mutable state.
"""
