"""
rentalcore - rental pricing, fees, availability and booking slots for a
child-passenger-safety marketplace.
"""

__version__ = "0.1.0"
