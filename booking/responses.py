from rest_framework import status
from rest_framework.response import Response


class EnvelopeMixin:
    """
    Wrap successful DRF responses as {"data": ..., "error": null}.

    Error responses are already shaped by booking.exceptions.api_exception_handler,
    and 204 responses carry no body.
    """

    def finalize_response(self, request, response, *args, **kwargs):
        if (
            isinstance(response, Response)
            and response.status_code < 400
            and response.status_code != status.HTTP_204_NO_CONTENT
            and not getattr(response, "enveloped", False)
        ):
            response.data = {"data": response.data, "error": None}
            response.enveloped = True
        return super().finalize_response(request, response, *args, **kwargs)
