"""
ordercrm - order management core.

Dynamic field catalog, formula fields, order CRUD with sequential
display identifiers, shop-scoped permissions and dashboard statistics.
"""

__version__ = "0.1.0"
