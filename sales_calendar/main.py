import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from sales_calendar.core import config
from sales_calendar.database import Base, engine, ensure_appointment_schema
from sales_calendar.models import appointment
from sales_calendar.routes import auth_routes, calendar_routes

config.validate_runtime_config()

app = FastAPI(title='Sales Calendar')

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.CORS_ALLOW_ORIGINS),
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine, tables=[appointment.Appointment.__table__])
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/health')
def health():
    return {'status': 'Sales Calendar API Running'}


app.add_api_route('/', calendar_routes.home, methods=['GET'])
app.include_router(auth_routes.router, prefix='/auth')
app.include_router(calendar_routes.router, prefix='/calendar')
