"""Routing: exact route-key registry with a uniform middleware chain.

Routes and middleware are registered during setup and compiled into
memoized chains when the router freezes.
"""
