# rad_core/iam/api/schema_serializers.py
from __future__ import annotations

from rest_framework import serializers


class LoginRequestSerializer(serializers.Serializer):
    # presence is checked by SessionIssuer so the 400 message stays uniform
    email = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class SwitchOrganizationRequestSerializer(serializers.Serializer):
    organizationIdentifier = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SessionResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    message = serializers.CharField()
    token = serializers.CharField()
    expiresIn = serializers.IntegerField()
    user = serializers.DictField()
    organizationContext = serializers.CharField()
    redirectTo = serializers.CharField()


class MessageResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    message = serializers.CharField()


class MeResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    user = serializers.DictField()
    organizationContext = serializers.CharField()
    tokenContext = serializers.DictField()
    organizationStats = serializers.DictField(required=False)


class OrganizationOptionSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    identifier = serializers.CharField()
    displayName = serializers.CharField(source="display_name")
    status = serializers.CharField()
