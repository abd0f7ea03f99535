import logging

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from clientdesk.config import settings
from clientdesk.database import Base, engine
from clientdesk.models import activity, client_image, client_note, user, user_session  # noqa: F401
from clientdesk.routers import (
    activities,
    auth,
    clients,
    dashboard,
    images,
    notes,
    profile,
    reminders,
    users,
)
from clientdesk.services.payment_reminder_service import payment_reminder_scheduler
from clientdesk.utils.response import create_response, handle_exception
from seed import run_seed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.PROJECT_NAME)

# Auto create tables
Base.metadata.create_all(bind=engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    run_seed()
    await payment_reminder_scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    await payment_reminder_scheduler.stop()

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(users.router)
app.include_router(clients.router)
app.include_router(images.router)
app.include_router(notes.router)
app.include_router(activities.router)
app.include_router(dashboard.router)
app.include_router(reminders.router)


@app.get("/")
def home():
    try:
        return create_response(
            message="ClientDesk API running",
            data={"service": "clientdesk"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@app.get("/api-info")
def api_info():
    return create_response(
        message="API information",
        data={
            "service": settings.PROJECT_NAME,
            "docs_url": "/docs",
            "public_gallery": settings.PUBLIC_GALLERY_ENABLED,
            "payment_reminders": settings.PAYMENT_REMINDER_AUTO_ENABLED,
        },
        status_code=status.HTTP_200_OK
    )
