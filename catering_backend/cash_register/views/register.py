# cash_register/views/register.py

"""
CASH REGISTER API VIEWS

Endpoints (all under /api/cash-register/):
- GET  current/                 open session of the caller, or null
- POST open/                    open a drawer with a counted float
- GET  <id>/close-preview/      expected cash and variance for ?counted=
- POST <id>/close/              close a drawer (notes required)
- GET  history/?page=           caller's sessions, newest first

Errors use the canonical body {"error": {"code", "message"}}.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cash_register.models import RegisterSession
from cash_register.serializers import (
    ClosePreviewQuerySerializer,
    ClosePreviewSerializer,
    CloseRegisterInputSerializer,
    OpenRegisterInputSerializer,
    RegisterSessionSerializer,
)
from cash_register.services.exceptions import (
    RegisterAlreadyClosedError,
    RegisterAlreadyOpenError,
    RegisterPermissionError,
)
from cash_register.services.register_service import (
    close_preview,
    close_session,
    get_open_session,
    open_session,
    session_history,
)
from permissions.roles import (
    CAP_POS_VIEW,
    CAP_REGISTER_CLOSE_ANY,
    CAP_REGISTER_OPERATE,
    HasCapability,
    has_capability,
)


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def _validation_message(exc: DjangoValidationError) -> str:
    if hasattr(exc, "message_dict"):
        return "; ".join(
            f"{field}: {' '.join(messages)}" for field, messages in exc.message_dict.items()
        )
    return " ".join(exc.messages)


def _session_for(request, session_id) -> RegisterSession:
    """
    Operators see their own sessions; close_any holders see everyone's.
    """
    qs = RegisterSession.objects.select_related("operator", "closed_by")
    if not has_capability(request.user, CAP_REGISTER_CLOSE_ANY):
        qs = qs.filter(operator=request.user)
    return get_object_or_404(qs, id=session_id)


class CurrentRegisterView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_VIEW

    @extend_schema(
        responses={200: RegisterSessionSerializer},
        description="Open register session of the caller (null when the drawer is closed)",
    )
    def get(self, request):
        session = get_open_session(request.user)
        data = RegisterSessionSerializer(session).data if session else None
        return Response({"session": data, "is_open": session is not None})


class OpenRegisterView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REGISTER_OPERATE

    @extend_schema(
        request=OpenRegisterInputSerializer,
        responses={201: RegisterSessionSerializer},
        description="Open a register session for the caller",
    )
    def post(self, request):
        serializer = OpenRegisterInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            session = open_session(request.user, serializer.validated_data["opening_balance"])
        except DjangoValidationError as exc:
            return error_response(
                code="validation_error",
                message=_validation_message(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
            )
        except RegisterAlreadyOpenError as exc:
            return error_response(
                code="register_already_open",
                message=str(exc),
                http_status=status.HTTP_409_CONFLICT,
            )

        return Response(RegisterSessionSerializer(session).data, status=status.HTTP_201_CREATED)


class ClosePreviewView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REGISTER_OPERATE

    @extend_schema(
        parameters=[
            OpenApiParameter(name="counted", required=False, type=str, description="Counted cash"),
        ],
        responses={200: ClosePreviewSerializer},
        description="Expected cash in the drawer and the variance against a counted amount",
    )
    def get(self, request, session_id):
        query = ClosePreviewQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        session = _session_for(request, session_id)
        preview = close_preview(session, query.validated_data.get("counted"))
        return Response(ClosePreviewSerializer(preview).data)


class CloseRegisterView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REGISTER_OPERATE

    @extend_schema(
        request=CloseRegisterInputSerializer,
        responses={200: RegisterSessionSerializer},
        description="Close a register session (irreversible)",
    )
    def post(self, request, session_id):
        serializer = CloseRegisterInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session = get_object_or_404(RegisterSession, id=session_id)

        try:
            session = close_session(
                session,
                serializer.validated_data["closing_balance"],
                actor=request.user,
                notes=serializer.validated_data.get("notes", ""),
            )
        except DjangoValidationError as exc:
            return error_response(
                code="validation_error",
                message=_validation_message(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
            )
        except RegisterPermissionError as exc:
            return error_response(
                code="forbidden",
                message=str(exc),
                http_status=status.HTTP_403_FORBIDDEN,
            )
        except RegisterAlreadyClosedError as exc:
            return error_response(
                code="register_already_closed",
                message=str(exc),
                http_status=status.HTTP_409_CONFLICT,
            )

        return Response(RegisterSessionSerializer(session).data)


class RegisterHistoryView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_VIEW

    @extend_schema(
        parameters=[OpenApiParameter(name="page", required=False, type=int)],
        responses={200: RegisterSessionSerializer(many=True)},
        description="Register sessions of the caller, newest first (10 per page)",
    )
    def get(self, request):
        page_number = request.query_params.get("page") or 1
        page = session_history(request.user, page=page_number)

        return Response(
            {
                "count": page.paginator.count,
                "page": page.number,
                "num_pages": page.paginator.num_pages,
                "results": RegisterSessionSerializer(page.object_list, many=True).data,
            }
        )
