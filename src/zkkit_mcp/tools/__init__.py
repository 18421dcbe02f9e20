"""Tool handlers.

Each handler takes the ``AppState`` plus validated arguments and returns the
rendered Markdown text. ``ZkKitError`` from the network layer propagates to
the server, which turns it into a structured tool error.
"""
