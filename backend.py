from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
import os
from pathlib import Path
import uvicorn


# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()  # Load .env file if it exists

from config import settings

# Import FastAPI routers
from routes.tasks import tasks_bp
from routes.events import events_bp
from routes.appointments import appointments_bp
from routes.insights import insights_bp
from routes.config import config_bp

from services.data_sources import get_data_source

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(), logging.FileHandler(settings.LOG_FILE)]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan event handler for startup and shutdown."""
    # Startup
    logger.info('Application starting up')
    source = get_data_source()
    logger.info(f"Insights data source: {source.name}, reference time zone: {settings.TIMEZONE}")

    yield

    # Shutdown
    logger.info('Application shutting down')
    try:
        from database.models import db
        db.close()
        logger.info('Database connections closed')
    except Exception as e:
        logger.error(f'Error closing database connections: {e}')

    logger.info('Application shutdown complete')


app = FastAPI(title='FlowSync API', version='1.0.0', lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# Include routers
app.include_router(tasks_bp)
app.include_router(events_bp)
app.include_router(appointments_bp)
app.include_router(insights_bp)
app.include_router(config_bp)


@app.get('/api/health')
def get_health():
    return {
        'status': 'ok',
        'service': 'FlowSync API',
        'dataSource': get_data_source().name,
    }


# Static dashboard build
frontend_dir = Path('frontend/dist')
if frontend_dir.exists():
    app.mount('/assets', StaticFiles(directory=str(frontend_dir / 'assets')), name='assets')

    @app.get('/')
    def serve_dashboard():
        return FileResponse(str(frontend_dir / 'index.html'))


if __name__ == '__main__':
    logger.info('Starting FlowSync API on http://localhost:8001')
    uvicorn.run(
        '__main__:app',
        host=os.getenv('FLOWSYNC_HOST', '0.0.0.0'),
        port=int(os.getenv('FLOWSYNC_PORT', '8001')),
        reload=os.getenv('FLOWSYNC_RELOAD', 'false').lower() == 'true',
    )
