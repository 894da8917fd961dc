"""
Thin JSON-RPC proxy endpoints used by the browser client, so wallet code
never talks to the RPC provider (and never sees its API key) directly.
"""

import logging
import time

from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from django_x402_prompts.api.serializers import (
    AccountInfoRequestSerializer,
    SimulateTransactionSerializer,
)
from django_x402_prompts.choices import RequestLogStatusTypes, RequestLogTypes
from django_x402_prompts.exceptions import (
    RpcForbiddenError,
    RpcResponseError,
    SolanaRpcError,
)
from django_x402_prompts.services.payment_log_service import PaymentLogService
from django_x402_prompts.solana.base_solana_client import get_base_solana_client
from django_x402_prompts.solana.solana_transaction_query_client import (
    SolanaTransactionQueryClient,
)

logger = logging.getLogger(__name__)


def get_transaction_query_client() -> SolanaTransactionQueryClient:
    return SolanaTransactionQueryClient(base_solana_client=get_base_solana_client())


class SimulateTransactionView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = SimulateTransactionSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Missing tx (base64-encoded transaction)"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            result = get_transaction_query_client().simulate_transaction(
                serializer.validated_data["tx"]
            )
        except RpcResponseError as exc:
            logger.warning(f"Simulation returned error: {exc}")
            return Response(
                {"error": {"code": exc.rpc_code, "message": exc.rpc_message}},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except SolanaRpcError as exc:
            logger.error(f"simulateTransaction failed: {exc}")
            return Response(
                {"error": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response(result)


class LatestBlockhashView(generics.GenericAPIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            latest_blockhash = get_transaction_query_client().get_latest_blockhash()
        except SolanaRpcError as exc:
            logger.error(f"getLatestBlockhash error: {exc}")
            return Response(
                {"error": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        if not latest_blockhash:
            logger.error("getLatestBlockhash returned null")
            return Response(
                {"error": "No blockhash returned from RPC"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            {
                "blockhash": latest_blockhash.blockhash,
                "latest_blockhash": latest_blockhash.blockhash,
                "last_valid_block_height": latest_blockhash.last_valid_block_height,
            }
        )


class AccountInfoView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    serializer_class = AccountInfoRequestSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "pubkey required"}, status=status.HTTP_400_BAD_REQUEST
            )

        pubkey = serializer.validated_data["pubkey"]
        try:
            account_info = get_transaction_query_client().get_account_info(pubkey)
        except RpcForbiddenError as exc:
            logger.warning(f"getAccountInfo forbidden by provider: {exc}")
            return Response(
                {"error": "Access forbidden to RPC provider", "code": 403},
                status=status.HTTP_403_FORBIDDEN,
            )
        except RpcResponseError as exc:
            logger.warning(f"getAccountInfo provider error: {exc}")
            return Response(
                {"error": exc.rpc_message or "RPC error", "code": exc.rpc_code},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except SolanaRpcError as exc:
            logger.error(f"getAccountInfo failed: {exc}")
            PaymentLogService().log_event(
                RequestLogTypes.RPC_ACCOUNT_INFO,
                {"error": str(exc), "pubkey": pubkey},
                RequestLogStatusTypes.ERROR,
            )
            return Response(
                {"error": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        if not account_info.exists:
            return Response({"exists": False, "account": None})

        return Response(
            {
                "exists": True,
                "lamports": account_info.lamports,
                "owner": account_info.owner,
                "executable": account_info.executable,
                "data": account_info.data,
            }
        )


class RpcHealthView(generics.GenericAPIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            result = get_transaction_query_client().get_health()
        except SolanaRpcError as exc:
            return Response(
                {"ok": False, "status": exc.status_code, "data": str(exc)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response({"ok": True, "provider": result or "unknown"})


class RpcPingView(generics.GenericAPIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response({"ok": True, "ts": int(time.time() * 1000)})
