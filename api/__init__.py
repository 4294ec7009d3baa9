"""
Vehicle Catalog API package.
"""
