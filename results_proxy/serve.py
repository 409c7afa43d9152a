import uvicorn

from .config import settings


def main() -> None:
    """Run the results proxy under uvicorn with the configured host and port."""
    uvicorn.run(
        "results_proxy.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
