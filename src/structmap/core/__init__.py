"""
Core mapping engine: shape discovery, convention context, generation,
caching and pipelines. Importing this package performs no registration.
"""
