"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area. Every
operation returns a Result envelope, scopes its queries to the business it is
given, and pairs each mutation with its audit entry in one transaction.
"""
