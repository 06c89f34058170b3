# rad_core/iam/projections.py
from __future__ import annotations

from typing import Any

from rest_framework import serializers

from rad_core.iam.roles import Role, determine_primary_role, granted_roles


class SubscriptionSummarySerializer(serializers.Serializer):
    plan = serializers.CharField()
    maxUsers = serializers.IntegerField(source="max_users")
    maxStudiesPerMonth = serializers.IntegerField(source="max_studies_per_month")
    subscriptionEndDate = serializers.DateTimeField(source="subscription_end_date", allow_null=True)


class OrganizationSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    identifier = serializers.CharField()
    displayName = serializers.CharField(source="display_name")
    status = serializers.CharField()
    features = serializers.JSONField()
    subscription = SubscriptionSummarySerializer(source="*")


class LabSummarySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    identifier = serializers.CharField()
    isActive = serializers.BooleanField(source="is_active")
    settings = serializers.JSONField()


class DoctorProfileSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    specialization = serializers.CharField()
    licenseNumber = serializers.CharField(source="license_number")
    signature = serializers.CharField()
    isActiveProfile = serializers.BooleanField(source="is_active_profile")


class SessionUserSerializer(serializers.Serializer):
    """Fields every role sees about itself. Never includes password material."""
    id = serializers.UUIDField()
    username = serializers.CharField()
    email = serializers.EmailField()
    fullName = serializers.CharField(source="full_name")
    role = serializers.CharField()
    isActive = serializers.BooleanField(source="is_active")
    isLoggedIn = serializers.BooleanField(source="is_logged_in")
    organizationIdentifier = serializers.CharField(source="organization_identifier")
    lastLoginAt = serializers.DateTimeField(source="last_login_at", allow_null=True)
    loginCount = serializers.IntegerField(source="login_count")
    visibleColumns = serializers.JSONField(source="visible_columns")
    accountRoles = serializers.JSONField(source="account_roles")
    primaryRole = serializers.SerializerMethodField()
    linkedLabs = serializers.SerializerMethodField()

    def get_primaryRole(self, obj) -> str:
        return determine_primary_role(granted_roles(obj)) or obj.role

    def get_linkedLabs(self, obj) -> list[str]:
        return [str(pk) for pk in obj.linked_labs.values_list("id", flat=True)]


def organization_summary(organization) -> dict[str, Any] | None:
    if organization is None:
        return None
    return OrganizationSummarySerializer(organization).data


def lab_summary(lab) -> dict[str, Any] | None:
    if lab is None:
        return None
    return LabSummarySerializer(lab).data


def doctor_profile_for(user) -> dict[str, Any] | None:
    from rad_core.iam.models import DoctorProfile

    profile = DoctorProfile.objects.filter(user_id=user.id).first()
    if profile is None:
        return None
    return DoctorProfileSerializer(profile).data


def project_user(user) -> dict[str, Any]:
    """
    Role-specific user payload for login and /auth/me.

    - everyone: SessionUserSerializer fields (+ organization when linked)
    - lab_staff: + lab
    - doctor_account: + doctorProfile
    """
    data = dict(SessionUserSerializer(user).data)

    if user.organization_id:
        data["organization"] = organization_summary(user.organization)

    if user.role == Role.LAB_STAFF and user.lab_id:
        data["lab"] = lab_summary(user.lab)

    if user.role == Role.DOCTOR_ACCOUNT:
        data["doctorProfile"] = doctor_profile_for(user)

    return data
