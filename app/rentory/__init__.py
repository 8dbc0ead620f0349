"""
Rentory: inventory core for event-equipment rental.

Provides the product catalog, the instance registry, availability
computation over date ranges, capacity allocation and the stock ledger.
"""

__version__ = "0.1.0"
