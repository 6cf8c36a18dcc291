"""Desktop integration of portable application images.

Modules:
- integration: move an image into place and write its launcher entry
- cleanup: remove launcher entries whose image is gone
- staleness: detect entries and services older than the installed engine
"""

__version__ = "2.2.0"
