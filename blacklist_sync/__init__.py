"""
Blacklist sync.

Keeps a URL-blocking rule list consistent between local storage and a cloud
storage provider (Google Drive or Dropbox) under OAuth2 authorization.
"""

__version__ = "1.0.0"
