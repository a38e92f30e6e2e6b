import os
import logging

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables before modules that read them at import time
load_dotenv()

from flowinsights.routes import router  # noqa: E402

# Logging setup (structured-ish JSON)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='{"time":"%(asctime)s","level":"%(levelname)s","message":"%(message)s","module":"%(name)s"}',
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Workflow Execution Insights")
app.include_router(router)

logger.info("Insights API ready")
