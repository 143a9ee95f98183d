"""
Discora - Event Handlers
========================

Gateway event listeners, each loaded as an extension by the bot.
"""
