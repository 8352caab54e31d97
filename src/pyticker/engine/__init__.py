"""Cooperative engines.

Each engine exposes pure step/poll functions over its own state model. The
runtime owns the states and threads them through the engines once per loop
iteration, in this order: acquisition, screen, watchdog, alert.
"""
