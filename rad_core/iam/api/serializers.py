# rad_core/iam/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from rad_core.iam.projections import SessionUserSerializer, lab_summary
from rad_core.iam.roles import Role


class ManagedUserSerializer(SessionUserSerializer):
    lab = serializers.SerializerMethodField()
    createdBy = serializers.UUIDField(source="created_by_id", allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at")

    def get_lab(self, obj):
        return lab_summary(obj.lab)


class UserCreateSerializer(serializers.Serializer):
    fullName = serializers.CharField(source="full_name", allow_blank=True)
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=Role.choices)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True)
    username = serializers.CharField(required=False, allow_blank=True, max_length=150)
    accountRoles = serializers.ListField(
        source="account_roles", child=serializers.ChoiceField(choices=Role.choices), required=False
    )
    labId = serializers.UUIDField(source="lab_id", required=False, allow_null=True)


class UserRolesSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    accountRoles = serializers.ListField(
        source="account_roles", child=serializers.ChoiceField(choices=Role.choices), required=False
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError({"detail": "Provide role and/or accountRoles."})
        return attrs


class AvailableRoleSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()
