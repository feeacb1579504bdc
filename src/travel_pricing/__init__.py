"""
Travel Pricing Package

Pricing engine for travel-agency proposals.
Resolves an enquiry's price using Base Cost → Markup → Discount → Tax → Per-Person pipeline.
"""

__version__ = "1.0.0"
