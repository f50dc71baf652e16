"""API server entry point for python -m forecastee.api"""
import uvicorn
from forecastee.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "forecastee.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
