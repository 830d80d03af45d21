"""Redemption session endpoints

One endpoint per user action. Every action endpoint loads the session, runs
the action on a RedemptionWorkflow, saves the session and returns its snapshot.
"""
import logging
from typing import Any, Callable, Optional

import redis
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.error.exceptions import (ComponentException, FlowException,
                                   SystemException)
from core.redemption.workflow import RedemptionResult, RedemptionWorkflow
from core.state.manager import RedemptionSessionStore
from core.utils.error_handler import ErrorHandler

from .serializers import (AmountSerializer, CardTypeSerializer,
                          CreateSessionSerializer, GuestPhoneSerializer,
                          RatingSerializer, SelectBranchSerializer,
                          SelectCardSerializer, SelectMethodSerializer,
                          SelectVendorSerializer, VendorMobileMoneySerializer,
                          VendorSearchSerializer)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "component": status.HTTP_400_BAD_REQUEST,
    "flow": status.HTTP_409_CONFLICT,
    "system": status.HTTP_502_BAD_GATEWAY,
}


class HealthCheck(APIView):
    """Health check endpoint for container health monitoring"""
    permission_classes = []
    throttle_classes = []

    @staticmethod
    def get(request):
        try:
            redis_client = redis.from_url(settings.REDIS_URL)
            redis_client.ping()
            return Response({
                "status": "healthy",
                "redis": "connected"
            }, status=status.HTTP_200_OK)
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Health check failed: {str(e)}")
            return Response({
                "status": "unhealthy",
                "error": str(e)
            }, status=status.HTTP_503_SERVICE_UNAVAILABLE)


def get_session_store() -> RedemptionSessionStore:
    return RedemptionSessionStore()


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def _error_status(error: dict) -> int:
    return ERROR_STATUS.get(error["error"]["type"], status.HTTP_500_INTERNAL_SERVER_ERROR)


def _invalid_input(serializer) -> Response:
    field, messages = next(iter(serializer.errors.items()))
    error = ErrorHandler.handle_component_error(
        component="api",
        field=field,
        value=serializer.initial_data.get(field, "") if hasattr(serializer.initial_data, "get") else "",
        message=str(messages[0]) if messages else "Invalid input"
    )
    return Response(error, status=status.HTTP_400_BAD_REQUEST)


def _session_not_found(session_id: str) -> Response:
    error = ErrorHandler.handle_flow_error(
        step="unknown",
        action="load_session",
        data={"session_id": session_id},
        message="Redemption session not found or expired"
    )
    return Response(error, status=status.HTTP_404_NOT_FOUND)


def _run(
    request: Request,
    session_id: str,
    perform: Callable[[RedemptionWorkflow], Any],
    serializer_class=None
) -> Response:
    """Load the session, apply one action and save the result"""
    data = None
    if serializer_class is not None:
        serializer = serializer_class(data=request.data)
        if not serializer.is_valid():
            return _invalid_input(serializer)
        data = serializer.validated_data

    try:
        store = get_session_store()
        state = store.load(session_id)
    except SystemException as e:
        error = ErrorHandler.handle_exception(e)
        return Response(error, status=_error_status(error))
    if state is None:
        return _session_not_found(session_id)

    workflow = RedemptionWorkflow(
        state=state,
        store=store,
        session_id=session_id,
        token=_bearer_token(request)
    )

    error = None
    result = None
    try:
        result = perform(workflow) if data is None else perform(workflow, data)
    except (ComponentException, FlowException, SystemException) as e:
        error = ErrorHandler.handle_exception(e)

    try:
        store.save(session_id, workflow.state)
    except SystemException as e:
        error = ErrorHandler.handle_exception(e)
        return Response(error, status=_error_status(error))

    body = {"session_id": session_id, "session": workflow.snapshot()}
    if error is not None:
        body.update(error)
        return Response(body, status=_error_status(error))

    if isinstance(result, RedemptionResult):
        body["result"] = result.to_dict()
        if not result.success:
            return Response(body, status=ERROR_STATUS.get(result.error_type, status.HTTP_400_BAD_REQUEST))
    return Response(body, status=status.HTTP_200_OK)


@api_view(['POST'])
def create_session(request: Request) -> Response:
    """Start a redemption session"""
    serializer = CreateSessionSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer)

    try:
        store = get_session_store()
        session_id, state = store.create(serializer.validated_data.get("auth_phone"))
    except SystemException as e:
        error = ErrorHandler.handle_exception(e)
        return Response(error, status=_error_status(error))

    workflow = RedemptionWorkflow(state=state)
    return Response(
        {"session_id": session_id, "session": workflow.snapshot()},
        status=status.HTTP_201_CREATED
    )


@api_view(['GET', 'DELETE'])
def session_detail(request: Request, session_id: str) -> Response:
    """Poll a session or discard it

    Polling runs debounced validations whose idle window has passed.
    """
    if request.method == 'DELETE':
        try:
            get_session_store().delete(session_id)
        except SystemException as e:
            error = ErrorHandler.handle_exception(e)
            return Response(error, status=_error_status(error))
        return Response(status=status.HTTP_204_NO_CONTENT)

    return _run(request, session_id, lambda workflow: workflow.poll())


# Method selector

@api_view(['POST'])
def select_method(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.select_method(d["method"]), SelectMethodSerializer)


@api_view(['POST'])
def back_to_method(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w: w.back())


@api_view(['POST'])
def reset_session(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w: w.reset())


@api_view(['POST'])
def set_guest_phone(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.set_guest_phone(d["phone_number"]), GuestPhoneSerializer)


# Vendor resolver

@api_view(['POST'])
def enter_vendor_mobile_money(request: Request, session_id: str) -> Response:
    return _run(
        request, session_id,
        lambda w, d: w.enter_vendor_mobile_money(d["value"]),
        VendorMobileMoneySerializer
    )


@api_view(['POST'])
def enter_vendor_search(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.enter_vendor_search(d["search"]), VendorSearchSerializer)


@api_view(['POST'])
def select_vendor(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.select_vendor(d["vendor_id"]), SelectVendorSerializer)


# Card and branch selector

@api_view(['POST'])
def select_branch(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.select_branch(d["branch_id"]), SelectBranchSerializer)


@api_view(['POST'])
def select_card_type(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.select_card_type(d["card_type"]), CardTypeSerializer)


@api_view(['POST'])
def select_card(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.select_card(d["card_id"]), SelectCardSerializer)


@api_view(['POST'])
def enter_amount(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.enter_amount(d["amount"]), AmountSerializer)


# Submission and post-redemption

@api_view(['POST'])
def submit_redemption(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w: w.submit())


@api_view(['POST'])
def start_rating(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w: w.start_rating())


@api_view(['POST'])
def set_rating(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w, d: w.set_rating(d["rating"]), RatingSerializer)


@api_view(['POST'])
def submit_rating(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w: w.submit_rating())


@api_view(['POST'])
def skip_rating(request: Request, session_id: str) -> Response:
    return _run(request, session_id, lambda w: w.skip_rating())
