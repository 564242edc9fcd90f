from .tenancy import Organization, Profile
from .agents import Agent, Property, Lead
from .commissions import (
    Commission, CommissionEvent,
    COMMISSION_STATUSES, PAYMENT_STATUSES, TRANSACTION_TYPES,
)

__all__ = [
    'Organization', 'Profile',
    'Agent', 'Property', 'Lead',
    'Commission', 'CommissionEvent',
    'COMMISSION_STATUSES', 'PAYMENT_STATUSES', 'TRANSACTION_TYPES',
]
