"""ASGI entrypoint: ``uvicorn lawncare.main:app``."""

from prometheus_fastapi_instrumentator import Instrumentator

from lawncare import create_app
from lawncare.core.config import settings
from lawncare.core.logging import configure_logging

configure_logging("DEBUG" if settings.APP_ENV == "dev" else "INFO", app_name=settings.APP_NAME)
app = create_app(settings)
Instrumentator(excluded_handlers=["/health", "/metrics", "/static.*"]).instrument(app).expose(
    app, include_in_schema=False
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("lawncare.main:app", host=settings.HOST, port=settings.PORT)
