from rest_framework import serializers

from core.redemption.phone import digits_only
from core.redemption.state import MAX_RATING
from core.redemption.types import CardType, RedemptionMethod


class CreateSessionSerializer(serializers.Serializer):
    auth_phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)

    def validate_auth_phone(self, value):
        if value and not digits_only(value):
            raise serializers.ValidationError("Invalid phone number")
        return value or None


class SelectMethodSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=[method.value for method in RedemptionMethod])

    def validate_method(self, value):
        return RedemptionMethod(value)


class GuestPhoneSerializer(serializers.Serializer):
    phone_number = serializers.CharField(allow_blank=True, max_length=20)


class VendorMobileMoneySerializer(serializers.Serializer):
    value = serializers.CharField(allow_blank=True, max_length=20, trim_whitespace=False)


class VendorSearchSerializer(serializers.Serializer):
    search = serializers.CharField(allow_blank=True, max_length=100, trim_whitespace=False)


class SelectVendorSerializer(serializers.Serializer):
    vendor_id = serializers.IntegerField()


class SelectBranchSerializer(serializers.Serializer):
    branch_id = serializers.IntegerField()


class CardTypeSerializer(serializers.Serializer):
    card_type = serializers.CharField(max_length=20)

    def validate_card_type(self, value):
        card_type = CardType.parse(value)
        if card_type is None:
            raise serializers.ValidationError(
                f"Unknown card type. Choose one of {', '.join(t.label for t in CardType)}"
            )
        return card_type


class SelectCardSerializer(serializers.Serializer):
    """card_id of null clears the selection"""
    card_id = serializers.IntegerField(allow_null=True)


class AmountSerializer(serializers.Serializer):
    amount = serializers.CharField(allow_blank=True, max_length=20)


class RatingSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=0, max_value=MAX_RATING)
