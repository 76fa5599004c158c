"""Coffee catalog domain and storage.

This package contains the coffee record entity, the repository contract
shared by the storage adapters, and the primary (relational) and cache
(document) implementations of that contract.
"""
