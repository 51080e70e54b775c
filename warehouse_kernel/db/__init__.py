"""Database base classes, engine management and immutability listeners."""
