# rad_core/iam/openapi.py
from drf_spectacular.extensions import OpenApiAuthenticationExtension


class OrganizationJWTAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "rad_core.iam.auth.OrganizationJWTAuthentication"
    name = "OrganizationJWT"

    def get_security_definition(self, auto_schema):
        return {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": (
                "Send the token via `Authorization: Bearer <token>`, "
                "a `?token=` query parameter, or the auth_token cookie."
            ),
        }
