"""
Persistence adapters.

Services depend on the JSON store defined here instead of touching the files.
"""
