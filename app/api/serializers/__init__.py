from .session import (AmountSerializer, CardTypeSerializer,
                      CreateSessionSerializer, GuestPhoneSerializer,
                      RatingSerializer, SelectBranchSerializer,
                      SelectCardSerializer, SelectMethodSerializer,
                      SelectVendorSerializer, VendorMobileMoneySerializer,
                      VendorSearchSerializer)

__all__ = [
    'AmountSerializer',
    'CardTypeSerializer',
    'CreateSessionSerializer',
    'GuestPhoneSerializer',
    'RatingSerializer',
    'SelectBranchSerializer',
    'SelectCardSerializer',
    'SelectMethodSerializer',
    'SelectVendorSerializer',
    'VendorMobileMoneySerializer',
    'VendorSearchSerializer',
]
