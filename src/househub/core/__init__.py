"""Core domain types for HouseHub."""
