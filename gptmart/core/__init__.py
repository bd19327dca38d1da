"""
Core utilities shared across the GPTMart API.

Configuration, PIN hashing, rate limiting and request parsing live here so
routers and services do not reach for os.environ or raw request bodies.
"""
