"""FastAPI application package for the IntelliPark payments backend."""

__version__ = "0.1.0"
