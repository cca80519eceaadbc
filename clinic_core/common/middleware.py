from __future__ import annotations

from django.utils.deprecation import MiddlewareMixin

from clinic_core.common.api.exceptions import ensure_request_id


class RequestIdMiddleware(MiddlewareMixin):
    """
    Attaches a stable request id (honours an inbound X-Request-Id) and echoes it
    back on the response, so error envelopes and audit rows can be correlated.
    """

    HEADER = "HTTP_X_REQUEST_ID"

    def process_request(self, request):
        inbound = (request.META.get(self.HEADER) or "").strip()
        if inbound:
            request.request_id = inbound[:64]
        ensure_request_id(request)
        return None

    def process_response(self, request, response):
        rid = getattr(request, "request_id", None)
        if rid:
            response["X-Request-Id"] = rid
        return response


def client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "") or ""
