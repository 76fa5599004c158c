"""FastAPI application module for the coffee marketplace.

This module contains the FastAPI application, route handlers, request and
response schemas, and the HTTP error mapping.
"""
