"""
Providers application.

Merchants that fulfil orders, and the governorates they operate in.

Key components:
    - Governorate: Administrative region used for admin scoping
    - Provider: Merchant operated by a provider-role user
    - geography: Governorate display names and provider region lookup
"""
