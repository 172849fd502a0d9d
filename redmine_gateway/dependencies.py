"""FastAPI dependencies resolving the components stored on the application."""

from fastapi import Request

from .config import Settings
from .services.redmine_client import RedmineClient
from .services.ticket_composer import TicketComposer


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_redmine_client(request: Request) -> RedmineClient:
    return request.app.state.redmine_client


def get_ticket_composer(request: Request) -> TicketComposer:
    return request.app.state.ticket_composer
