"""
Venue handlers and the custody proxy
"""

from .base import VenueHandler
from .constant_product import ConstantProductVenue
from .custody import CustodyProxy
from .fixed_rate import FixedRateVenue

__all__ = [
    "VenueHandler",
    "ConstantProductVenue",
    "CustodyProxy",
    "FixedRateVenue",
]
