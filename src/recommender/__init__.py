"""Coffee recommendation module.

This module contains the similarity resolver, which answers "similar to this
coffee" and "recommended for this user" queries by composing the primary
and cache coffee stores.
"""
