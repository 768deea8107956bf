"""Doxcer.

An LLM-powered tool that documents Fabric PySpark notebooks by sending
them, with a fixed Dutch documentation template, to a chat-completions
API whose key is stored Fernet-encrypted in a .env file.
"""

__version__ = "0.1.4"
