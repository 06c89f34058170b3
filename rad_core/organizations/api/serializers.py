# rad_core/organizations/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from rad_core.organizations.models import CompanyType, Organization, OrganizationStatus, SubscriptionPlan


class OrganizationSerializer(serializers.ModelSerializer):
    displayName = serializers.CharField(source="display_name")
    companyType = serializers.CharField(source="company_type")
    maxUsers = serializers.IntegerField(source="max_users")
    maxStudiesPerMonth = serializers.IntegerField(source="max_studies_per_month")
    subscriptionStartDate = serializers.DateTimeField(source="subscription_start_date")
    subscriptionEndDate = serializers.DateTimeField(source="subscription_end_date")
    contactInfo = serializers.JSONField(source="contact_info")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Organization
        fields = [
            "id",
            "name",
            "identifier",
            "displayName",
            "companyType",
            "status",
            "plan",
            "maxUsers",
            "maxStudiesPerMonth",
            "subscriptionStartDate",
            "subscriptionEndDate",
            "features",
            "contactInfo",
            "address",
            "notes",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class _OrganizationFieldsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    displayName = serializers.CharField(source="display_name", required=False, allow_blank=True)
    companyType = serializers.ChoiceField(source="company_type", choices=CompanyType.choices, required=False)
    status = serializers.ChoiceField(choices=OrganizationStatus.choices, required=False)
    plan = serializers.ChoiceField(choices=SubscriptionPlan.choices, required=False)
    maxUsers = serializers.IntegerField(source="max_users", required=False, min_value=1)
    maxStudiesPerMonth = serializers.IntegerField(source="max_studies_per_month", required=False, min_value=0)
    subscriptionStartDate = serializers.DateTimeField(source="subscription_start_date", required=False, allow_null=True)
    subscriptionEndDate = serializers.DateTimeField(source="subscription_end_date", required=False, allow_null=True)
    features = serializers.JSONField(required=False)
    contactInfo = serializers.JSONField(source="contact_info", required=False)
    address = serializers.JSONField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class OrganizationCreateSerializer(_OrganizationFieldsSerializer):
    identifier = serializers.CharField(max_length=32, required=False, allow_blank=True)
    adminEmail = serializers.EmailField(source="admin_email")
    adminPassword = serializers.CharField(source="admin_password", required=False, allow_blank=True, min_length=6)
    adminFullName = serializers.CharField(source="admin_full_name", required=False, allow_blank=True)


class OrganizationUpdateSerializer(_OrganizationFieldsSerializer):
    # identifier is accepted but ignored: it is immutable
    identifier = serializers.CharField(required=False, write_only=True)
