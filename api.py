"""HTTP entry point

Queued work runs in-process with QUEUE_BACKEND=memory. With redis, start
`python -m src.worker.task_runner` next to the API, and
`python -m src.worker.relay_watchdog` in either case.
"""

import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        reload=ApplicationConfig.ENVIRONMENT == "development",
        log_level=str(ApplicationConfig.LOG_LEVEL).lower(),
    )
