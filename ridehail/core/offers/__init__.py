# ridehail/core/offers/__init__.py
"""
Домен предложений цены.
"""

from ridehail.core.offers.models import Offer, OfferAcceptDTO, OfferCreateDTO
from ridehail.core.offers.repository import OfferRepository
from ridehail.core.offers.service import OfferBook

__all__ = [
    "Offer",
    "OfferAcceptDTO",
    "OfferCreateDTO",
    "OfferRepository",
    "OfferBook",
]
