from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from prometheus_client import Counter

ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"]
)


class ProductAPIError(HTTPException):
    """Error surfaced to the client as a failed envelope."""

    error_type = "error"

    def __init__(self, status_code: int, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.message = message


class UnauthorizedError(ProductAPIError):
    error_type = "unauthorized"

    def __init__(self, message: str):
        super().__init__(401, message)


class NotFoundError(ProductAPIError):
    error_type = "not_found"

    def __init__(self, message: str):
        super().__init__(404, message)


class BadRequestError(ProductAPIError):
    error_type = "bad_request"

    def __init__(self, message: str):
        super().__init__(400, message)


async def product_api_error_handler(request: Request, exc: ProductAPIError) -> JSONResponse:
    service = request.app.state.settings.service_name
    route = request.scope.get("route")
    endpoint = route.path if route is not None else request.url.path
    logger.warning(f"{exc.error_type}: {exc.message}", extra={"status": exc.status_code})
    ERROR_COUNT.labels(service=service, endpoint=endpoint, error_type=exc.error_type).inc()
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "status": exc.status_code},
    )
