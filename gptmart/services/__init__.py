"""
High-level use cases for the GPTMart API.

Routers call these services instead of manipulating the JSON documents or
sessions directly.
"""
