"""
Discora
=======

Discord community bot backed by an Appwrite database that a web
dashboard manages.
"""

__version__ = "1.0.0"
