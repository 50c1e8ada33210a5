"""
SendOutboundEmail Lambda

HTTP-triggered Lambda that synthesizes a new email from a POST body
and sends it from the worker address to the primary forward address.

Flow:
    HTTP POST
    → Function URL / API Gateway
    → This Lambda
    → SES: new outbound email
"""

from lambdas.send_outbound_email.handler import (
    HttpRequest,
    HttpResponse,
    build_outbound_message,
    handle_request,
    lambda_handler,
)

__all__ = [
    "HttpRequest",
    "HttpResponse",
    "build_outbound_message",
    "handle_request",
    "lambda_handler",
]
