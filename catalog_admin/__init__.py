"""Catalog administration service: products, orders and their image assets."""
