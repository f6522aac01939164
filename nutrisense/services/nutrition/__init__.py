"""
Consumption resolution service.
"""

from .consumption_resolver import ConsumptionResolver

__all__ = [
    "ConsumptionResolver"
]
