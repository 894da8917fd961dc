from django.urls import path

from django_x402_prompts.api.views.purchase_history import (
    PaymentInfoView,
    PurchaseHistoryView,
)
from django_x402_prompts.api.views.refine_prompt import RefinePromptView
from django_x402_prompts.api.views.rpc_proxy import (
    AccountInfoView,
    LatestBlockhashView,
    RpcHealthView,
    RpcPingView,
    SimulateTransactionView,
)

urlpatterns = [
    path("prompt", RefinePromptView.as_view()),
    path("history/<str:wallet_address>", PurchaseHistoryView.as_view()),
    path("payment-info", PaymentInfoView.as_view()),
    path("rpc/simulateTransaction", SimulateTransactionView.as_view()),
    path("rpc/getLatestBlockhash", LatestBlockhashView.as_view()),
    path("rpc/getAccountInfo", AccountInfoView.as_view()),
    path("rpc/health", RpcHealthView.as_view()),
    path("rpc/ping", RpcPingView.as_view()),
]
