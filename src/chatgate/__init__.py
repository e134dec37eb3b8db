"""Chatgate - multi-provider AI chat routing with ordered fallback"""

__version__ = "0.1.0"
