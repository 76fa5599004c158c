"""Coffee marketplace backend.

This package provides a REST backend for a coffee marketplace: coffee
product management and recommendations that blend a primary relational
store with a secondary cache store.

Modules:
    api: FastAPI application and REST API endpoints
    catalog: Coffee entity, repository contract and store adapters
    recommender: Dual-store similarity resolver
"""

__version__ = "0.1.0"
