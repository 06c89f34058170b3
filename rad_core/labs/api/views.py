# rad_core/labs/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from rad_core.common.api.exceptions import Unauthorized
from rad_core.common.security import secret_matches
from rad_core.iam.config import get_auth_config
from rad_core.labs.api.serializers import CompressionToggleSerializer
from rad_core.labs.services import LabService

API_KEY_HEADER = "X-API-Key"


class CompressionToggleView(APIView):
    """
    Machine-to-machine toggle used by the compression service.
    Authenticated by a static API key, body `apiKey` or X-API-Key header.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(request=CompressionToggleSerializer, tags=["Labs"])
    def post(self, request):
        ser = CompressionToggleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        provided = ser.validated_data.get("apiKey") or request.headers.get(API_KEY_HEADER)
        if not secret_matches(provided, get_auth_config().lab_compression_api_key):
            raise Unauthorized("Invalid API key", code="invalid_api_key")

        lab = LabService.set_compression(
            lab_id=ser.validated_data["labId"],
            enable=ser.validated_data["enable"],
        )
        return Response(
            {
                "success": True,
                "message": f"Compression {'enabled' if lab.compression_enabled else 'disabled'} for {lab.name}",
                "data": {
                    "labId": str(lab.id),
                    "identifier": lab.identifier,
                    "enableCompression": lab.compression_enabled,
                },
            },
            status=status.HTTP_200_OK,
        )
