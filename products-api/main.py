import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from auth import AuthorizationPolicy, StaticTokenPolicy, require_authorization
from config import Settings
from database import create_db_engine, create_session_factory, get_session, init_db
from errors import BadRequestError, NotFoundError, ProductAPIError, product_api_error_handler
from repository import ProductRepository, SqlAlchemyProductRepository
from schemas import Envelope, ProductCreate, ProductResponse, ProductUpdate

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"]
)


def configure_logging(settings: Settings) -> None:
    # Config logging JSON (niveaux INFO, WARNING, ERROR)
    logger.remove()
    if settings.log_sink:
        logger.add(
            sink=settings.log_sink,
            format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
            level=settings.log_level,
            serialize=True,
            rotation="1 day",
        )
    else:
        logger.add(sink=sys.stderr, level=settings.log_level, serialize=True)


def get_repository(session: Session = Depends(get_session)) -> ProductRepository:
    return SqlAlchemyProductRepository(session)


router = APIRouter(prefix="/api/products", tags=["products"])


@router.get(
    "",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_authorization("view the products"))],
)
def list_products(repository: ProductRepository = Depends(get_repository)):
    logger.info("Fetching all products")
    products = [ProductResponse.model_validate(p) for p in repository.list_all()]
    return Envelope(
        success=True,
        message="Products retrieved successfully.",
        status=200,
        data=products,
    )


# Doit être déclaré avant la route {product_id}
@router.get(
    "/alt-read",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_authorization("access this information"))],
)
def list_products_alt(repository: ProductRepository = Depends(get_repository)):
    """Same listing as GET /api/products, with the count in the message."""
    products = [ProductResponse.model_validate(p) for p in repository.list_all()]
    logger.info(f"Alternate read returned {len(products)} products")
    return Envelope(
        success=True,
        message=f"Found {len(products)} products.",
        status=200,
        data=products,
    )


@router.get(
    "/{product_id}",
    response_model=Optional[Envelope],
    response_model_exclude_none=True,
    dependencies=[Depends(require_authorization("view this product"))],
)
def get_product(product_id: int, repository: ProductRepository = Depends(get_repository)):
    """Return the product, or a null body when it does not exist (no 404 here)."""
    logger.info(f"Fetching product {product_id}")
    product = repository.get(product_id)
    if product is None:
        logger.info(f"Product {product_id} not found, returning empty result")
        return None
    return Envelope(
        success=True,
        message="Product retrieved successfully.",
        status=200,
        data=ProductResponse.model_validate(product),
    )


@router.post(
    "",
    status_code=201,
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_authorization("create a product"))],
)
def create_product(
    payload: ProductCreate,
    request: Request,
    response: Response,
    repository: ProductRepository = Depends(get_repository),
):
    logger.info(f"Creating product: {payload.name}")
    product = repository.create(payload)
    response.headers["Location"] = str(request.url_for("get_product", product_id=product.id))
    logger.info(f"Product created with ID {product.id}")
    return Envelope(
        success=True,
        message="The product has been created successfully.",
        status=201,
        data={"id": product.id},
    )


@router.put(
    "/{product_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
    dependencies=[Depends(require_authorization("update the product"))],
)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    repository: ProductRepository = Depends(get_repository),
):
    if payload.id != product_id:
        raise BadRequestError("The product ID does not match the ID provided in the URL.")

    logger.info(f"Updating product {product_id}")
    if repository.update(product_id, payload) is None:
        raise NotFoundError(f"Product with ID {product_id} not found.")

    return Envelope(
        success=True,
        message=f"Product with ID {product_id} updated successfully.",
        status=200,
    )


@router.delete(
    "/{product_id}",
    status_code=204,
    dependencies=[Depends(require_authorization("delete the product"))],
)
def delete_product(product_id: int, repository: ProductRepository = Depends(get_repository)):
    logger.info(f"Deleting product {product_id}")
    if not repository.delete(product_id):
        raise NotFoundError(f"Product with ID {product_id} not found.")
    return Response(status_code=204)


def create_app(
    settings: Optional[Settings] = None,
    authorization_policy: Optional[AuthorizationPolicy] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    engine = create_db_engine(settings.database_url)
    init_db(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Disposing database engine")
        app.state.engine.dispose()

    app = FastAPI(
        title="Products API",
        description="An API to manage the products of the system.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.authorization_policy = authorization_policy or StaticTokenPolicy(
        settings.master_key_header, settings.master_key
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ProductAPIError, product_api_error_handler)

    # Middleware pour logger les requests avec correlation ID
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Generate or propagate correlation ID (trace-id)
        trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
        start_time = time.time()

        with logger.contextualize(trace_id=trace_id, service=settings.service_name):
            logger.info(
                f"Request: {request.method} {request.url.path}",
                extra={"method": request.method, "url": str(request.url), "trace_id": trace_id}
            )

            response = await call_next(request)

            latency = time.time() - start_time
            REQUEST_COUNT.labels(
                service=settings.service_name,
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()
            REQUEST_LATENCY.labels(
                service=settings.service_name,
                method=request.method,
                endpoint=request.url.path
            ).observe(latency)

            logger.info(
                f"Response status: {response.status_code}",
                extra={"status": response.status_code, "latency": latency, "trace_id": trace_id}
            )

            response.headers["X-Trace-ID"] = trace_id
            return response

    @app.get("/metrics")
    async def metrics():
        """Endpoint /metrics compatible Prometheus"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy", "service": settings.service_name}

    app.include_router(router)
    logger.info(f"{settings.service_name} ready")
    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    logger.info(f"Starting Products API on port {settings.port}")
    import uvicorn
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
