# bin/__init__.py
"""Command line drivers: `neuronfun-colorizer` and `neuronfun-retexter`."""
