"""
Discora - Services Package
==========================

Feature services. Each subpackage owns one concern and exposes a
service class with ``setup()`` / ``stop()``; import from the subpackage
directly.
"""
