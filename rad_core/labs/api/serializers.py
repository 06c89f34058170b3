# rad_core/labs/api/serializers.py
from __future__ import annotations

from rest_framework import serializers


class CompressionToggleSerializer(serializers.Serializer):
    labId = serializers.UUIDField()
    enable = serializers.BooleanField()
    apiKey = serializers.CharField(required=False, allow_blank=True, write_only=True)
