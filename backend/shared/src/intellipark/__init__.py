"""Shared domain code for the IntelliPark payments backend.

Holds the store, gateway and reconciliation services plus the models they
exchange. The FastAPI layer lives in the ``intellipark_api`` package.
"""

__version__ = "0.1.0"
