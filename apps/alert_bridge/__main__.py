"""Run the Alert Bridge with uvicorn: ``python -m apps.alert_bridge``."""

import uvicorn

from apps.alert_bridge.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "apps.alert_bridge.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
