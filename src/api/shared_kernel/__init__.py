"""Shared Kernel.

Building blocks used by more than one bounded context: bearer token
validation, the per-request tenant context handed to request handlers,
observation context for probes, and request coalescing.
"""
