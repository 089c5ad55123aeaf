# users/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

# ---------------------------
# SERIALIZER
# ---------------------------


class MeSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    email = serializers.EmailField()
    full_name = serializers.CharField()
    display_name = serializers.CharField()
    role = serializers.CharField()
    is_report_admin = serializers.BooleanField()


# ---------------------------
# VIEW
# ---------------------------


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MeSerializer

    @extend_schema(
        tags=["auth"],
        responses={200: MeSerializer},
        description="Current user, including whether they may finalize reports.",
    )
    def get(self, request):
        user = request.user

        return Response(
            {
                "id": user.id,
                "email": user.email,
                "full_name": user.full_name,
                "display_name": user.display_name,
                "role": user.role,
                "is_report_admin": user.is_report_admin,
            }
        )
