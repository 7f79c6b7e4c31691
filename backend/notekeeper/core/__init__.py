# Core package init
"""
Notekeeper Backend: Core Helpers
=================================

Request-scoped primitives shared by the routes and the note stores.
"""
