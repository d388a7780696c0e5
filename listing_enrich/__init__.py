"""
Listing owner enrichment

Platform detection for listing URLs plus the owner-info enrichment batch.
"""
__version__ = "1.0.0"
