"""
Author Store - Authors API over an in-memory indexed store

A small HTTP service backed by a schema-indexed, transactional in-memory
store with snapshot-isolated readers and a single serialized writer.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
