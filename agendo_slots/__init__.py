"""
agendo_slots - bookable time slots for service providers.
"""

__version__ = "0.1.0"
